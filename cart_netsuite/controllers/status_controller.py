"""
Integration health and status reporting.

Read-only: tests each vendor connection and collects local facts about
the process, its directories and recent log activity.
"""

import importlib.util
import logging
import os
import platform
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import psutil

from cart_netsuite.clients.netsuite_client import NetSuiteClient
from cart_netsuite.clients.sendgrid_client import SendGridClient
from cart_netsuite.clients.threedcart_client import ThreeDCartClient
from cart_netsuite.notifications.email_service import EmailService
from cart_netsuite.utils.date_utils import format_bytes, now_iso
from cart_netsuite.utils.logger import summarize_log_activity


REQUIRED_MODULES = ['requests', 'pydantic', 'pandas', 'openpyxl', 'fastapi']

LOG_SIZE_WARNING = 100 * 1024 * 1024
UPLOAD_FILES_WARNING = 100
MEMORY_WARNING_PERCENT = 80
MEMORY_ERROR_PERCENT = 95


def _is_writable_dir(path: str) -> bool:
    """Create the directory when missing, then check it can be written."""
    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        return False
    return os.access(path, os.W_OK)


def _format_duration(seconds: float) -> str:
    days, remainder = divmod(int(seconds), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {secs}s"


class StatusController:
    """Builds the status dashboard data and connection alerts."""

    def __init__(
        self,
        settings,
        threedcart_client: ThreeDCartClient,
        netsuite_client: NetSuiteClient,
        email_service: EmailService,
        logger: Optional[logging.Logger] = None
    ):
        self.settings = settings
        self.threedcart = threedcart_client
        self.netsuite = netsuite_client
        self.email_service = email_service
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings, logger: Optional[logging.Logger] = None) -> "StatusController":
        """Build the controller with fresh vendor clients."""
        return cls(
            settings=settings,
            threedcart_client=ThreeDCartClient.from_settings(settings),
            netsuite_client=NetSuiteClient.from_settings(settings),
            email_service=EmailService(SendGridClient(settings.sendgrid_api_key), settings),
            logger=logger
        )

    def _service_checks(self) -> Dict[str, Callable[[], Dict[str, Any]]]:
        return {
            '3DCart': self.threedcart.test_connection,
            'NetSuite': self.netsuite.test_connection,
            'SendGrid': self.email_service.test_connection,
        }

    def _check_service(self, name: str, check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            result = dict(check())
        except Exception as e:
            self.logger.error(f"Service status check failed for {name}: {e}")
            result = {'success': False, 'error': str(e)}

        result['name'] = name
        result['last_checked'] = now_iso()
        return result

    # ========================================================================
    # Status Reports
    # ========================================================================

    def get_status(self) -> Dict[str, Any]:
        """
        Test every vendor connection and collect local health facts.

        Returns:
            {'timestamp', 'overall_status' (healthy|degraded), 'services',
            'system_info', 'configuration', 'health_checks'}
        """
        services = {
            name: self._check_service(name, check)
            for name, check in self._service_checks().items()
        }
        services_up = sum(1 for result in services.values() if result.get('success'))
        overall = 'healthy' if services_up == len(services) else 'degraded'

        status = {
            'timestamp': now_iso(),
            'overall_status': overall,
            'services': services,
            'system_info': self.get_system_info(),
            'configuration': self.get_configuration_status(),
            'health_checks': self.perform_health_checks(),
        }

        self.logger.info(
            f"Status check performed: {overall} ({services_up}/{len(services)} services up)"
        )
        return status

    def get_detailed_status(self) -> Dict[str, Any]:
        """Status plus recent log activity and performance figures."""
        status = self.get_status()
        status['recent_activity'] = self.get_recent_activity()
        status['performance'] = self.get_performance_metrics(status['services'])
        return status

    def get_system_info(self) -> Dict[str, Any]:
        process = psutil.Process()
        memory = process.memory_info()
        disk = psutil.disk_usage(os.getcwd())

        return {
            'python_version': platform.python_version(),
            'server_time': datetime.now().astimezone().isoformat(),
            'timezone': self.settings.timezone,
            'memory_usage': {
                'current': format_bytes(memory.rss),
                'virtual': format_bytes(memory.vms),
                'system_total': format_bytes(psutil.virtual_memory().total),
            },
            'disk_space': {
                'free': format_bytes(disk.free),
                'total': format_bytes(disk.total),
            },
            'modules': {
                name: importlib.util.find_spec(name) is not None
                for name in REQUIRED_MODULES
            },
        }

    def get_configuration_status(self) -> Dict[str, Any]:
        log_dir = os.path.dirname(self.settings.log_file) or '.'
        return {
            'logs_directory_writable': _is_writable_dir(log_dir),
            'uploads_directory_writable': _is_writable_dir(self.settings.upload_path),
            'notifications_enabled': self.settings.notifications_enabled,
            'auto_create_customers': self.settings.auto_create_customers,
            'webhook_secret_configured': bool(self.settings.webhook_secret),
        }

    def perform_health_checks(self) -> Dict[str, Any]:
        """Log size, upload backlog, required modules and memory usage."""
        checks = {}

        log_file = self.settings.log_file
        if log_file and os.path.isfile(log_file):
            log_size = os.path.getsize(log_file)
            ok = log_size < LOG_SIZE_WARNING
            checks['log_file'] = {
                'status': 'ok' if ok else 'warning',
                'size': format_bytes(log_size),
                'message': 'Log file size is normal' if ok else 'Log file is large, consider rotation',
            }
        else:
            checks['log_file'] = {
                'status': 'info',
                'message': 'Log file does not exist yet',
            }

        upload_dir = self.settings.upload_path
        if os.path.isdir(upload_dir):
            file_count = sum(
                1 for name in os.listdir(upload_dir)
                if os.path.isfile(os.path.join(upload_dir, name))
            )
            ok = file_count < UPLOAD_FILES_WARNING
            checks['upload_directory'] = {
                'status': 'ok' if ok else 'warning',
                'file_count': file_count,
                'message': 'Upload directory is clean' if ok else 'Many files in upload directory, consider cleanup',
            }

        missing = [name for name in REQUIRED_MODULES if importlib.util.find_spec(name) is None]
        checks['modules'] = {
            'status': 'error' if missing else 'ok',
            'missing': missing,
            'message': f"Missing modules: {', '.join(missing)}" if missing else 'All required modules available',
        }

        memory_percent = psutil.Process().memory_percent()
        if memory_percent < MEMORY_WARNING_PERCENT:
            memory_status = 'ok'
        elif memory_percent < MEMORY_ERROR_PERCENT:
            memory_status = 'warning'
        else:
            memory_status = 'error'
        checks['memory'] = {
            'status': memory_status,
            'usage_percent': round(memory_percent, 2),
            'message': f"Memory usage: {memory_percent:.2f}%",
        }

        return checks

    def get_recent_activity(self) -> Dict[str, Any]:
        """Order, API call and error counts from the log for the last hour and day."""
        now = datetime.now()
        activity = {}

        for label, window in (('last_hour', timedelta(hours=1)), ('last_24_hours', timedelta(days=1))):
            summary = summarize_log_activity(self.settings.log_file, now - window)
            activity[label] = {
                'orders_processed': summary['orders_processed'],
                'orders_successful': summary['orders_successful'],
                'orders_failed': summary['orders_failed'],
                'customers_created': summary['customers_created'],
                'api_calls': summary['api_calls'],
                'errors': len(summary['errors']),
            }

        return activity

    def get_performance_metrics(self, services: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        started = psutil.Process().create_time()
        return {
            'api_response_times': {
                name: result.get('response_time', 'N/A')
                for name, result in services.items()
            },
            'uptime': {
                'started_at': datetime.fromtimestamp(started).isoformat(),
                'uptime': _format_duration(time.time() - started),
            },
        }

    # ========================================================================
    # Connection Tests and Alerts
    # ========================================================================

    def test_service_connection(self, service_name: str) -> Dict[str, Any]:
        """Connection test for one service by case-insensitive name."""
        for name, check in self._service_checks().items():
            if name.lower() == service_name.strip().lower():
                return self._check_service(name, check)

        return {
            'success': False,
            'error': f"Unknown service: {service_name}",
        }

    def check_and_alert(self) -> Dict[str, Any]:
        """Run the status check and email an alert for every failing service."""
        status = self.get_status()

        for name, result in status['services'].items():
            if result.get('success'):
                continue
            self.email_service.send_connection_alert(name, 'Connection Failed', {
                'Error': result.get('error', 'Unknown error'),
                'Last Checked': result['last_checked'],
                'Status Code': result.get('status_code') or 'N/A',
            })

        return status
