"""
Notification emails sent through SendGrid.

Every send is best effort: failures are logged and reported as False so
that a mail outage never breaks order processing.
"""

import logging
from html import escape
from typing import Any, Dict, List, Optional

from cart_netsuite.clients.sendgrid_client import SendGridClient
from cart_netsuite.utils.date_utils import now_local_str
from cart_netsuite.utils.error_handler import SendGridAPIError


STATUS_STYLES = {
    'success': '#28a745',
    'error': '#dc3545',
    'warning': '#ffc107',
}

_BASE_STYLE = """
body { font-family: Arial, sans-serif; margin: 20px; }
.header { background-color: #f8f9fa; padding: 20px; border-radius: 5px; }
.content { margin: 20px 0; }
.success { color: #28a745; }
.error { color: #dc3545; }
.warning { color: #ffc107; }
table { border-collapse: collapse; width: 100%; }
th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
th { background-color: #f2f2f2; }
.footer { margin-top: 30px; font-size: 12px; color: #6c757d; }
"""


def status_class(status: str) -> str:
    """CSS class for a status word: success, error or warning."""
    status = (status or '').lower()
    if any(word in status for word in ('fail', 'error', 'unhealthy')):
        return 'error'
    if any(word in status for word in ('success', 'healthy', 'completed', 'created')):
        return 'success'
    return 'warning'


def _details_rows(details: Optional[Dict[str, Any]]) -> str:
    rows = []
    for key, value in (details or {}).items():
        label = escape(str(key).replace('_', ' ').title())
        rows.append(f"<tr><th>{label}</th><td>{escape(str(value))}</td></tr>")
    return "".join(rows)


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{escape(title)}</title><style>{_BASE_STYLE}</style></head>
<body>
<div class="header"><h2>{escape(title)}</h2><p>{escape(now_local_str())}</p></div>
<div class="content">{body}</div>
<div class="footer">3DCart to NetSuite Integration</div>
</body>
</html>"""


class EmailService:
    """Builds and sends the integration's notification emails."""

    def __init__(
        self,
        sendgrid_client: SendGridClient,
        settings,
        logger: Optional[logging.Logger] = None
    ):
        self.client = sendgrid_client
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)

    @property
    def enabled(self) -> bool:
        return bool(self.settings.notifications_enabled and self.settings.notification_recipients)

    def _subject(self, text: str) -> str:
        prefix = (self.settings.notification_subject_prefix or '').strip()
        return f"{prefix} {text}" if prefix else text

    def _send(self, subject: str, html_content: str, recipients: Optional[List[str]] = None) -> bool:
        """Send one message; False (logged) on failure."""
        if not self.enabled:
            self.logger.debug(f"Notifications disabled, not sending: {subject}")
            return True

        to = recipients or self.settings.notification_recipients
        try:
            self.client.send_mail(
                subject=self._subject(subject),
                html_content=html_content,
                recipients=to,
                from_email=self.settings.sendgrid_from_email,
                from_name=self.settings.sendgrid_from_name
            )
        except SendGridAPIError as e:
            self.logger.error(f"Failed to send email '{subject}': {e}")
            return False

        self.logger.info(f"Email sent: {subject} -> {', '.join(to)}")
        return True

    def send_order_notification(
        self,
        order_id: Any,
        status: str,
        details: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Outcome of processing one order."""
        css = status_class(status)
        body = (
            f"<p>Order <strong>#{escape(str(order_id))}</strong> "
            f"<span class=\"{css}\">{escape(status)}</span></p>"
            f"<table>{_details_rows(details)}</table>"
        )
        return self._send(
            f"Order #{order_id} - {status}",
            _page(f"Order #{order_id} Processing Update", body)
        )

    def send_error_notification(self, error: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """Unexpected integration error."""
        body = (
            f"<p class=\"error\"><strong>Error:</strong> {escape(str(error))}</p>"
            f"<table>{_details_rows(context)}</table>"
        )
        return self._send("Integration Error", _page("Integration Error", body))

    def send_daily_summary(self, summary: Dict[str, Any]) -> bool:
        """Daily activity counts, as produced by summarize_log_activity."""
        processed = summary.get('orders_processed', 0)
        successful = summary.get('orders_successful', 0)
        failed = summary.get('orders_failed', 0)
        rate = (successful / processed * 100) if processed else 0.0

        counters = {
            'orders_processed': processed,
            'orders_successful': successful,
            'orders_failed': failed,
            'success_rate': f"{rate:.1f}%",
            'customers_created': summary.get('customers_created', 0),
            'customers_existing': summary.get('customers_existing', 0),
            'api_calls': summary.get('api_calls', 0),
        }
        body = f"<table>{_details_rows(counters)}</table>"

        errors = summary.get('errors') or []
        if errors:
            items = "".join(f"<li>{escape(str(e))}</li>" for e in errors[:20])
            body += f"<h3 class=\"error\">Errors ({len(errors)})</h3><ul>{items}</ul>"

        return self._send("Daily Summary", _page("Daily Integration Summary", body))

    def send_connection_alert(
        self,
        service: str,
        status: str,
        details: Optional[Dict[str, Any]] = None
    ) -> bool:
        """A vendor API failed its connection test."""
        css = status_class(status)
        body = (
            f"<p><strong>{escape(service)}</strong> connection status: "
            f"<span class=\"{css}\">{escape(status)}</span></p>"
            f"<table>{_details_rows(details)}</table>"
        )
        return self._send(
            f"Connection Alert - {service}",
            _page(f"{service} Connection Alert", body)
        )

    def send_upload_summary(self, results: Dict[str, Any], file_name: str) -> bool:
        """Outcome of an uploaded order file."""
        counters = {
            'file': file_name,
            'total': results.get('total', 0),
            'successful': results.get('successful', 0),
            'already_existing': results.get('already_existing', 0),
            'failed': results.get('failed', 0),
        }
        body = f"<table>{_details_rows(counters)}</table>"

        errors = results.get('errors') or []
        if errors:
            rows = "".join(
                f"<tr><td>{escape(str(e.get('row_number', '')))}</td>"
                f"<td>{escape(str(e.get('order_id', '')))}</td>"
                f"<td>{escape(str(e.get('error', '')))}</td></tr>"
                for e in errors
            )
            body += (
                "<h3 class=\"error\">Errors</h3>"
                "<table><tr><th>Row</th><th>Order</th><th>Error</th></tr>"
                f"{rows}</table>"
            )

        return self._send(
            f"Order Upload Processed - {file_name}",
            _page("Order Upload Summary", body)
        )

    def test_connection(self) -> Dict[str, Any]:
        return self.client.test_connection()
