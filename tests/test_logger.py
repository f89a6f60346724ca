"""
Test logging helpers and log activity summaries.
"""

import logging
import os
from datetime import datetime, timedelta

import pytest

from cart_netsuite.utils.logger import (
    LOG_DATE_FORMAT,
    log_api_call,
    log_order_event,
    log_webhook,
    setup_logging,
    shutdown_logging,
    summarize_log_activity,
)


@pytest.fixture
def test_logger():
    return logging.getLogger('cart_netsuite.tests')


class TestEventHelpers:
    """Test structured log lines."""

    def test_order_event(self, test_logger, caplog):
        with caplog.at_level(logging.INFO):
            log_order_event(test_logger, 12345, 'processing_completed', {'netsuite_order_id': '9001'})

        assert "Order Event: processing_completed | order_id=12345, netsuite_order_id=9001" in caplog.text

    def test_successful_api_call_is_info(self, test_logger, caplog):
        with caplog.at_level(logging.INFO):
            log_api_call(test_logger, 'NetSuite', '/customer', 'GET', 200, 12.345)

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert 'API Call Successful' in record.getMessage()
        assert 'duration_ms=12.35' in record.getMessage()

    @pytest.mark.parametrize("status_code", [404, 500, None])
    def test_failed_api_call_is_warning(self, test_logger, caplog, status_code):
        with caplog.at_level(logging.INFO):
            log_api_call(test_logger, '3DCart', '/Orders/1', 'GET', status_code)

        assert caplog.records[-1].levelno == logging.WARNING
        assert 'API Call Failed' in caplog.text

    def test_webhook(self, test_logger, caplog):
        with caplog.at_level(logging.INFO):
            log_webhook(test_logger, '3DCart', 'order_webhook', {'payload_size': 42})

        assert "Webhook Received | source=3DCart, event=order_webhook, payload_size=42" in caplog.text


class TestSummarizeLogActivity:
    """Test counting activity from the log file."""

    def _line(self, when: datetime, level: str, message: str) -> str:
        return f"{when.strftime(LOG_DATE_FORMAT)} - cart_netsuite - {level} - {message}\n"

    def test_counts_window(self, tmp_path):
        now = datetime.now()
        log_file = tmp_path / 'app.log'
        log_file.write_text(
            self._line(now, 'INFO', 'Order Event: processing_completed | order_id=1')
            + self._line(now, 'INFO', 'Order Event: processing_failed | order_id=2')
            + self._line(now, 'ERROR', 'Sync failed for order 2')
            + self._line(now, 'INFO', 'Created new customer: a@example.com (NetSuite id 5)')
            + self._line(now, 'INFO', 'Using existing customer: b@example.com (NetSuite id 6)')
            + self._line(now, 'INFO', 'API Call Successful | service=NetSuite')
            + self._line(now - timedelta(days=2), 'INFO', 'Order Event: processing_completed | order_id=0')
            + "Traceback line without a timestamp\n"
        )

        summary = summarize_log_activity(str(log_file), now - timedelta(hours=24))

        assert summary == {
            'orders_processed': 2,
            'orders_successful': 1,
            'orders_failed': 1,
            'customers_created': 1,
            'customers_existing': 1,
            'api_calls': 1,
            'errors': ['Sync failed for order 2'],
        }

    def test_includes_rotated_files(self, tmp_path):
        now = datetime.now()
        (tmp_path / 'app.log').write_text(self._line(now, 'INFO', 'Order Event: processing_completed | order_id=1'))
        (tmp_path / 'app.log.1').write_text(self._line(now, 'INFO', 'Order Event: processing_completed | order_id=2'))

        summary = summarize_log_activity(str(tmp_path / 'app.log'), now - timedelta(hours=1))

        assert summary['orders_successful'] == 2

    def test_missing_log_file(self, tmp_path):
        summary = summarize_log_activity(str(tmp_path / 'none.log'), datetime.now())

        assert summary['orders_processed'] == 0
        assert summary['errors'] == []

    def test_no_log_file_configured(self):
        assert summarize_log_activity(None, datetime.now())['api_calls'] == 0


class TestSetupLogging:
    """Test logging configuration."""

    def test_file_handler(self, tmp_path):
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        saved_level = root.level
        log_file = tmp_path / 'logs' / 'app.log'

        try:
            setup_logging('DEBUG', str(log_file))
            logging.getLogger('cart_netsuite.tests').info('hello from the test')
            shutdown_logging()

            assert os.path.isfile(log_file)
            assert 'hello from the test' in log_file.read_text()
            assert root.handlers == []
        finally:
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)
