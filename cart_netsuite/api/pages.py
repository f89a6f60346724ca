"""
HTML pages for the browser-facing endpoints.
"""

from html import escape
from typing import Any, Dict, List, Optional


_STYLE = """
body { font-family: Arial, sans-serif; margin: 0; background: #f5f6f8; color: #212529; }
.container { max-width: 1100px; margin: 30px auto; background: #fff; padding: 25px 30px; border-radius: 6px; }
h1 { margin-top: 0; }
nav a { margin-right: 15px; }
.success, .ok, .healthy { color: #28a745; }
.error, .degraded { color: #dc3545; }
.warning, .info { color: #b8860b; }
.card { border: 1px solid #dee2e6; border-radius: 5px; padding: 15px; margin: 10px 0; }
table { border-collapse: collapse; width: 100%; margin: 10px 0; }
th, td { border: 1px solid #dee2e6; padding: 8px; text-align: left; }
th { background: #f2f2f2; }
.button { background: #007bff; color: #fff; border: none; padding: 10px 20px; border-radius: 4px; cursor: pointer; }
code { background: #f2f2f2; padding: 2px 4px; }
"""


def _layout(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{escape(title)}</title><style>{_STYLE}</style></head>
<body>
<div class="container">
<nav><a href="/">Home</a><a href="/upload">Upload Orders</a><a href="/status">Status</a><a href="/webhook">Webhook</a></nav>
<h1>{escape(title)}</h1>
{body}
</div>
</body>
</html>"""


def _table(rows: Dict[str, Any]) -> str:
    cells = "".join(
        f"<tr><th>{escape(str(key).replace('_', ' ').title())}</th><td>{escape(str(value))}</td></tr>"
        for key, value in rows.items()
    )
    return f"<table>{cells}</table>"


def index_page(settings) -> str:
    body = f"""
<p>{escape(settings.app_name)} v{escape(settings.app_version)} ({escape(settings.environment)})</p>
<div class="card"><h3><a href="/upload">Upload Orders</a></h3><p>Import orders from a CSV or Excel file.</p></div>
<div class="card"><h3><a href="/status">Integration Status</a></h3><p>Connection tests and health checks.</p></div>
<div class="card"><h3><a href="/webhook">Webhook</a></h3><p>Endpoint 3DCart posts new orders to.</p></div>
"""
    return _layout(settings.app_name, body)


def webhook_info_page(settings, webhook_url: str) -> str:
    details = _table({
        'method': 'POST',
        'content_type': 'application/json',
        'signature_header': 'X-Signature (hex HMAC-SHA256 of the body)',
        'webhook_secret': 'configured' if settings.webhook_secret else 'not configured',
        'retry_attempts': settings.retry_attempts,
    })
    body = f"""
<p>Configure 3DCart to POST order events to:</p>
<p><code>{escape(webhook_url)}</code></p>
{details}
"""
    return _layout("3DCart Webhook Endpoint", body)


def upload_form_page(settings, message: Optional[str] = None) -> str:
    max_mb = settings.upload_max_file_size / (1024 * 1024)
    allowed = ', '.join(f".{ext}" for ext in settings.allowed_extensions)
    notice = f'<p class="error">{escape(message)}</p>' if message else ''
    body = f"""
{notice}
<form method="post" action="/upload" enctype="multipart/form-data">
<p><input type="file" name="order_file" accept="{escape(allowed)}" required></p>
<p><button class="button" type="submit">Upload and Process</button></p>
</form>
<p>Accepted types: {escape(allowed)}. Maximum size: {max_mb:g}MB.</p>
<p>One order per row. Recognized columns include Order ID, Order Date, Email,
First Name, Last Name, Company, Phone, Address, City, State, Zip, Country,
SKU, Item Name, Qty and Price.</p>
"""
    return _layout("Upload Orders", body)


def upload_results_page(results: Dict[str, Any], file_name: str) -> str:
    summary = _table({
        'file': file_name,
        'total': results.get('total', 0),
        'successful': results.get('successful', 0),
        'already_existing': results.get('already_existing', 0),
        'failed': results.get('failed', 0),
    })

    processed: List[Dict[str, Any]] = results.get('processed_orders') or []
    processed_rows = "".join(
        f"<tr><td>{escape(str(entry.get('row_number', '')))}</td>"
        f"<td>{escape(str(entry.get('order_id', '')))}</td>"
        f"<td>{escape(str(entry.get('netsuite_order_id', '')))}</td>"
        f"<td>{escape(str(entry.get('customer_id', '')))}</td>"
        f"<td class=\"success\">{escape(str(entry.get('status', '')))}</td></tr>"
        for entry in processed
    )

    errors: List[Dict[str, Any]] = results.get('errors') or []
    error_rows = "".join(
        f"<tr><td>{escape(str(entry.get('row_number', '')))}</td>"
        f"<td>{escape(str(entry.get('order_id', '')))}</td>"
        f"<td class=\"error\">{escape(str(entry.get('error', '')))}</td></tr>"
        for entry in errors
    )

    body = f"<h3>Summary</h3>{summary}"
    if processed_rows:
        body += (
            "<h3>Processed Orders</h3><table><tr><th>Row</th><th>Order</th>"
            f"<th>NetSuite Order</th><th>Customer</th><th>Status</th></tr>{processed_rows}</table>"
        )
    if error_rows:
        body += (
            "<h3 class=\"error\">Errors</h3><table><tr><th>Row</th><th>Order</th>"
            f"<th>Error</th></tr>{error_rows}</table>"
        )
    body += '<p><a href="/upload">Upload another file</a></p>'
    return _layout("Upload Results", body)


def upload_error_page(message: str, errors: Optional[List[str]] = None) -> str:
    items = "".join(f"<li>{escape(e)}</li>" for e in (errors or []))
    body = f'<p class="error">{escape(message)}</p>'
    if items:
        body += f"<ul>{items}</ul>"
    body += '<p><a href="/upload">Try again</a></p>'
    return _layout("Upload Failed", body)


def status_page(status: Dict[str, Any]) -> str:
    overall = status.get('overall_status', 'unknown')
    body = f'<p>Overall status: <strong class="{escape(overall)}">{escape(overall.upper())}</strong>'
    body += f" <small>({escape(str(status.get('timestamp', '')))})</small></p>"

    body += "<h3>Services</h3><table><tr><th>Service</th><th>Status</th><th>Response Time</th><th>Details</th></tr>"
    for name, result in status.get('services', {}).items():
        ok = result.get('success')
        body += (
            f"<tr><td>{escape(name)}</td>"
            f"<td class=\"{'success' if ok else 'error'}\">{'Connected' if ok else 'Failed'}</td>"
            f"<td>{escape(str(result.get('response_time', 'N/A')))}</td>"
            f"<td>{escape(str(result.get('error', '')))}</td></tr>"
        )
    body += "</table>"

    body += "<h3>Health Checks</h3><table><tr><th>Check</th><th>Status</th><th>Message</th></tr>"
    for name, check in status.get('health_checks', {}).items():
        check_status = str(check.get('status', ''))
        body += (
            f"<tr><td>{escape(name.replace('_', ' ').title())}</td>"
            f"<td class=\"{escape(check_status)}\">{escape(check_status)}</td>"
            f"<td>{escape(str(check.get('message', '')))}</td></tr>"
        )
    body += "</table>"

    body += "<h3>Configuration</h3>" + _table(status.get('configuration', {}))

    system_info = dict(status.get('system_info', {}))
    memory = system_info.pop('memory_usage', {})
    disk = system_info.pop('disk_space', {})
    modules = system_info.pop('modules', {})
    system_info['memory'] = memory.get('current', 'N/A')
    system_info['disk_free'] = f"{disk.get('free', 'N/A')} of {disk.get('total', 'N/A')}"
    system_info['modules'] = ', '.join(
        f"{name} {'ok' if present else 'missing'}" for name, present in modules.items()
    )
    body += "<h3>System</h3>" + _table(system_info)

    activity = status.get('recent_activity')
    if activity:
        body += "<h3>Recent Activity</h3>"
        for window, counts in activity.items():
            body += f"<h4>{escape(window.replace('_', ' ').title())}</h4>" + _table(counts)

    performance = status.get('performance')
    if performance:
        body += "<h3>Performance</h3>"
        body += _table(performance.get('api_response_times', {}))
        body += _table(performance.get('uptime', {}))

    body += '<p><a href="/status?format=json">JSON</a> | <a href="/status?detailed=true">Detailed</a></p>'
    return _layout("Integration Status", body)
