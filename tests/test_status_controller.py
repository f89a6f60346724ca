"""
Test status controller.
"""

import os
from datetime import datetime, timedelta

import pytest

from cart_netsuite.controllers.status_controller import StatusController, _format_duration
from cart_netsuite.utils.logger import LOG_DATE_FORMAT


@pytest.fixture
def status_controller(settings, mock_threedcart_client, mock_netsuite_client, mock_email_service):
    return StatusController(settings, mock_threedcart_client, mock_netsuite_client, mock_email_service)


class TestGetStatus:
    """Test the status report."""

    def test_all_services_up(self, status_controller):
        status = status_controller.get_status()

        assert status['overall_status'] == 'healthy'
        assert set(status['services']) == {'3DCart', 'NetSuite', 'SendGrid'}
        assert status['services']['NetSuite']['name'] == 'NetSuite'
        assert 'last_checked' in status['services']['NetSuite']
        assert status['health_checks']['modules']['status'] == 'ok'
        assert status['configuration']['notifications_enabled'] is True
        assert status['configuration']['webhook_secret_configured'] is False

    def test_failing_service_degrades(self, status_controller, mock_netsuite_client):
        mock_netsuite_client.test_connection.return_value = {
            'success': False, 'error': 'NetSuite API Error: 401', 'status_code': 401
        }

        status = status_controller.get_status()

        assert status['overall_status'] == 'degraded'
        assert status['services']['NetSuite']['success'] is False

    def test_check_exception_is_reported(self, status_controller, mock_threedcart_client):
        mock_threedcart_client.test_connection.side_effect = RuntimeError("DNS failure")

        status = status_controller.get_status()

        assert status['overall_status'] == 'degraded'
        assert status['services']['3DCart'] == {
            'success': False,
            'error': 'DNS failure',
            'name': '3DCart',
            'last_checked': status['services']['3DCart']['last_checked'],
        }

    def test_configuration_creates_directories(self, status_controller, settings):
        config = status_controller.get_configuration_status()

        assert config['logs_directory_writable'] is True
        assert config['uploads_directory_writable'] is True
        assert os.path.isdir(settings.upload_path)

    def test_system_info(self, status_controller):
        info = status_controller.get_system_info()

        assert info['timezone'] == 'America/New_York'
        assert info['modules']['pandas'] is True
        assert set(info['memory_usage']) == {'current', 'virtual', 'system_total'}

    def test_health_checks_without_log_file(self, status_controller):
        checks = status_controller.perform_health_checks()

        assert checks['log_file']['status'] == 'info'
        assert checks['memory']['status'] in ('ok', 'warning', 'error')

    def test_upload_backlog(self, status_controller, settings):
        os.makedirs(settings.upload_path)
        for index in range(3):
            with open(os.path.join(settings.upload_path, f"orders_{index}.csv"), 'w') as handle:
                handle.write('x')

        checks = status_controller.perform_health_checks()

        assert checks['upload_directory']['status'] == 'ok'
        assert checks['upload_directory']['file_count'] == 3


class TestDetailedStatus:
    """Test the detailed status report."""

    def test_recent_activity_from_log(self, status_controller, settings):
        os.makedirs(os.path.dirname(settings.log_file))
        recent = datetime.now().strftime(LOG_DATE_FORMAT)
        old = (datetime.now() - timedelta(days=3)).strftime(LOG_DATE_FORMAT)
        with open(settings.log_file, 'w') as handle:
            handle.write(f"{recent} - app - INFO - Order Event: processing_completed | order_id=1\n")
            handle.write(f"{recent} - app - ERROR - Order 2 failed\n")
            handle.write(f"{old} - app - INFO - Order Event: processing_completed | order_id=0\n")

        status = status_controller.get_detailed_status()

        assert status['recent_activity']['last_hour']['orders_successful'] == 1
        assert status['recent_activity']['last_24_hours']['errors'] == 1
        assert status['performance']['api_response_times']['NetSuite'] == '30.00ms'
        assert 'uptime' in status['performance']['uptime']


class TestConnections:
    """Test single-service checks and alerts."""

    def test_service_by_name(self, status_controller, mock_netsuite_client):
        result = status_controller.test_service_connection('netsuite')

        assert result['success'] is True
        assert result['name'] == 'NetSuite'
        mock_netsuite_client.test_connection.assert_called_once()

    def test_unknown_service(self, status_controller):
        assert status_controller.test_service_connection('salesforce') == {
            'success': False,
            'error': 'Unknown service: salesforce',
        }

    def test_alerts_only_failing_services(self, status_controller, mock_threedcart_client, mock_email_service):
        mock_threedcart_client.test_connection.return_value = {
            'success': False, 'error': '3DCart API Error: timeout', 'status_code': None
        }

        status_controller.check_and_alert()

        mock_email_service.send_connection_alert.assert_called_once()
        name, status, details = mock_email_service.send_connection_alert.call_args[0]
        assert (name, status) == ('3DCart', 'Connection Failed')
        assert details['Status Code'] == 'N/A'

    def test_no_alert_when_healthy(self, status_controller, mock_email_service):
        status_controller.check_and_alert()

        mock_email_service.send_connection_alert.assert_not_called()


@pytest.mark.parametrize("seconds,expected", [
    (59, '0m 59s'),
    (3 * 3600 + 120, '3h 2m'),
    (2 * 86400 + 3600, '2d 1h 0m'),
])
def test_format_duration(seconds, expected):
    assert _format_duration(seconds) == expected
