"""
Validation helpers for order data, customer information, uploaded files
and NetSuite responses.

Every validate_* function returns a list of human-readable error strings;
an empty list means the input is valid. Nothing here raises or keeps state.
"""

import os
import re
from typing import Any, Dict, List, Optional


MANUAL_ORDER_PREFIX = 'MANUAL_'

ORDER_REQUIRED_FIELDS = ['OrderID', 'CustomerID', 'OrderDate', 'OrderStatusID']
ITEM_REQUIRED_FIELDS = ['CatalogID', 'ItemName', 'Quantity', 'ItemPrice']
CUSTOMER_REQUIRED_FIELDS = ['firstname', 'lastname', 'email']

_EMAIL_RE = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)
_PHONE_RE = re.compile(r'^[\d\s\-\+\(\)\.]+$')
_TAG_RE = re.compile(r'<[^>]*>')


def _is_blank(value: Any) -> bool:
    """Missing the way an order field can be missing: None, '', 0 or '0'."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in ('', '0')
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return not value


def is_numeric(value: Any) -> bool:
    """True for numbers and numeric strings ("12", "3.5", " 7 ")."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value).strip())
        return True
    except (TypeError, ValueError):
        return False


def is_valid_email(email: Optional[str]) -> bool:
    """Check an address has a plausible local part and dotted domain."""
    if not email or not isinstance(email, str):
        return False
    return bool(_EMAIL_RE.match(email.strip()))


def validate_threedcart_order(order_data: Dict[str, Any], manual: bool = False) -> List[str]:
    """
    Validate 3DCart order data.

    Args:
        order_data: Order payload (webhook JSON or normalized spreadsheet row)
        manual: True for uploaded rows - CustomerID isn't required (the
            customer is resolved by email) and generated MANUAL_ ids are
            accepted in place of numeric order ids

    Returns:
        List of validation errors
    """
    errors = []

    for field in ORDER_REQUIRED_FIELDS:
        if manual and field == 'CustomerID':
            continue
        if _is_blank(order_data.get(field)):
            errors.append(f"Missing required field: {field}")

    order_id = order_data.get('OrderID')
    if not _is_blank(order_id) and not is_numeric(order_id):
        if not (manual and str(order_id).startswith(MANUAL_ORDER_PREFIX)):
            errors.append("OrderID must be numeric")

    email = order_data.get('BillingEmail')
    if email and not is_valid_email(email):
        errors.append(f"Invalid email format: {email}")

    items = order_data.get('OrderItemList')
    if isinstance(items, list) and items:
        for index, item in enumerate(items):
            errors.extend(validate_order_item(item, index))
    else:
        errors.append("Order must contain at least one item")

    return errors


def validate_order_item(item: Dict[str, Any], index: Optional[int] = None) -> List[str]:
    """Validate a single order line."""
    errors = []
    prefix = f"Item {index}: " if index is not None else "Item: "

    if not isinstance(item, dict):
        return [prefix + "Invalid item data"]

    for field in ITEM_REQUIRED_FIELDS:
        value = item.get(field)
        if value is None or (isinstance(value, str) and value.strip() == ''):
            errors.append(prefix + f"Missing required field: {field}")

    quantity = item.get('Quantity')
    if quantity is not None and quantity != '':
        if not is_numeric(quantity) or float(quantity) <= 0:
            errors.append(prefix + "Quantity must be a positive number")

    price = item.get('ItemPrice')
    if price is not None and price != '' and not is_numeric(price):
        errors.append(prefix + "ItemPrice must be numeric")

    return errors


def validate_customer_data(customer_data: Dict[str, Any]) -> List[str]:
    """Validate the fields NetSuite needs to create a customer."""
    errors = []

    for field in CUSTOMER_REQUIRED_FIELDS:
        if not customer_data.get(field):
            errors.append(f"Missing required customer field: {field}")

    email = customer_data.get('email')
    if email and not is_valid_email(email):
        errors.append(f"Invalid customer email format: {email}")

    phone = customer_data.get('phone')
    if phone and not _PHONE_RE.match(str(phone)):
        errors.append("Invalid phone number format")

    return errors


def validate_netsuite_response(response: Any) -> List[str]:
    """Collect error messages embedded in a NetSuite response body."""
    if not isinstance(response, dict):
        return ["Invalid response format"]

    errors = []

    error = response.get('error')
    if error:
        message = error.get('message') if isinstance(error, dict) else str(error)
        errors.append(f"NetSuite API Error: {message or 'Unknown error'}")

    # SuiteTalk REST reports failures as o:errorDetails
    details = response.get('errors') or response.get('o:errorDetails') or []
    if isinstance(details, list):
        for detail in details:
            if isinstance(detail, dict):
                message = detail.get('message') or detail.get('detail') or str(detail)
            else:
                message = str(detail)
            errors.append(f"NetSuite Error: {message}")

    return errors


def validate_file_upload(
    filename: Optional[str],
    size: Optional[int],
    settings,
    content: Optional[bytes] = None
) -> List[str]:
    """
    Validate an uploaded order file before it is saved or parsed.

    Args:
        filename: Client-supplied file name
        size: Number of bytes received
        settings: Settings with upload limits
        content: Received bytes, when available, to confirm the transfer

    Returns:
        List of validation errors
    """
    if not filename:
        return ["No file uploaded"]

    if size is None or size == 0 or (content is not None and len(content) != size):
        return ["File upload was interrupted"]

    errors = []

    if size > settings.upload_max_file_size:
        max_size_mb = settings.upload_max_file_size / (1024 * 1024)
        errors.append(f"File size exceeds maximum allowed size of {max_size_mb:g}MB")

    extension = os.path.splitext(filename)[1].lower().lstrip('.')
    allowed = settings.allowed_extensions
    if extension not in allowed:
        errors.append(f"Invalid file type. Allowed types: {', '.join(allowed)}")

    return errors


def sanitize_string(value: Any, max_length: Optional[int] = None) -> str:
    """Trim, strip markup and truncate."""
    sanitized = _TAG_RE.sub('', str(value or '')).strip()
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]
    return sanitized


def sanitize_email(email: Optional[str]) -> Optional[str]:
    """Lower-case and trim an address; None when it isn't valid."""
    email = (email or '').strip().lower()
    return email if is_valid_email(email) else None


def normalize_phone_digits(phone: Optional[str]) -> str:
    """Digits only, for comparing phone numbers written differently."""
    return ''.join(c for c in str(phone or '') if c.isdigit())
