"""
Order file upload controller.

Accepts a CSV/XLSX/XLS file of manual orders, maps its columns onto 3DCart
field names, and runs every row through the NetSuite order sync.

FILE LAYOUT:
- One order per row, one line item per order
- Header names are matched case-insensitively against CSV_FIELD_MAPPING
  (spaces count as underscores); unknown columns are ignored
- Missing values get defaults (placeholder order id, current date, US)
"""

import logging
import os
import re
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from zipfile import BadZipFile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError

from cart_netsuite.clients.netsuite_client import NetSuiteClient
from cart_netsuite.clients.sendgrid_client import SendGridClient
from cart_netsuite.notifications.email_service import EmailService
from cart_netsuite.sync.order_sync import OrderSync
from cart_netsuite.utils.date_utils import now_local_str
from cart_netsuite.utils.error_handler import FileUploadError
from cart_netsuite.utils.logger import log_order_event
from cart_netsuite.utils.validator import MANUAL_ORDER_PREFIX, validate_file_upload


CSV_FIELD_MAPPING = {
    # Order
    'order_id': 'OrderID',
    'orderid': 'OrderID',
    'order id': 'OrderID',
    'order number': 'OrderID',
    'customer_id': 'CustomerID',
    'customerid': 'CustomerID',
    'customer id': 'CustomerID',
    'order_date': 'OrderDate',
    'orderdate': 'OrderDate',
    'order date': 'OrderDate',
    'date': 'OrderDate',
    'order_status': 'OrderStatusID',
    'orderstatusid': 'OrderStatusID',
    'status': 'OrderStatusID',
    'order_total': 'OrderTotal',
    'ordertotal': 'OrderTotal',
    'total': 'OrderTotal',
    'shipping_cost': 'ShippingCost',
    'shippingcost': 'ShippingCost',
    'sales_tax': 'SalesTax',
    'salestax': 'SalesTax',
    'tax': 'SalesTax',

    # Billing
    'billing_first_name': 'BillingFirstName',
    'billing_firstname': 'BillingFirstName',
    'billingfirstname': 'BillingFirstName',
    'first_name': 'BillingFirstName',
    'firstname': 'BillingFirstName',
    'billing_last_name': 'BillingLastName',
    'billing_lastname': 'BillingLastName',
    'billinglastname': 'BillingLastName',
    'last_name': 'BillingLastName',
    'lastname': 'BillingLastName',
    'billing_email': 'BillingEmail',
    'billingemail': 'BillingEmail',
    'email': 'BillingEmail',
    'billing_company': 'BillingCompany',
    'billingcompany': 'BillingCompany',
    'company': 'BillingCompany',
    'billing_phone': 'BillingPhoneNumber',
    'billingphonenumber': 'BillingPhoneNumber',
    'phone': 'BillingPhoneNumber',
    'billing_address': 'BillingAddress',
    'billing_address1': 'BillingAddress',
    'billingaddress': 'BillingAddress',
    'address': 'BillingAddress',
    'billing_address2': 'BillingAddress2',
    'billingaddress2': 'BillingAddress2',
    'address2': 'BillingAddress2',
    'billing_city': 'BillingCity',
    'billingcity': 'BillingCity',
    'city': 'BillingCity',
    'billing_state': 'BillingState',
    'billingstate': 'BillingState',
    'state': 'BillingState',
    'billing_zip': 'BillingZipCode',
    'billing_zipcode': 'BillingZipCode',
    'billingzipcode': 'BillingZipCode',
    'zip': 'BillingZipCode',
    'postal_code': 'BillingZipCode',
    'billing_country': 'BillingCountry',
    'billingcountry': 'BillingCountry',
    'country': 'BillingCountry',

    # Shipping
    'shipping_first_name': 'ShippingFirstName',
    'shipping_firstname': 'ShippingFirstName',
    'shipping_last_name': 'ShippingLastName',
    'shipping_lastname': 'ShippingLastName',
    'shipping_company': 'ShippingCompany',
    'shipping_address': 'ShippingAddress',
    'shipping_address1': 'ShippingAddress',
    'shipping_address2': 'ShippingAddress2',
    'shipping_city': 'ShippingCity',
    'shipping_state': 'ShippingState',
    'shipping_zip': 'ShippingZipCode',
    'shipping_zipcode': 'ShippingZipCode',
    'shipping_country': 'ShippingCountry',

    # Line item
    'item_name': 'ItemName',
    'itemname': 'ItemName',
    'product_name': 'ItemName',
    'product': 'ItemName',
    'item_sku': 'CatalogID',
    'sku': 'CatalogID',
    'catalog_id': 'CatalogID',
    'catalogid': 'CatalogID',
    'item_description': 'ItemDescription',
    'description': 'ItemDescription',
    'quantity': 'Quantity',
    'qty': 'Quantity',
    'item_price': 'ItemPrice',
    'itemprice': 'ItemPrice',
    'price': 'ItemPrice',
    'unit_price': 'ItemPrice',
}

ITEM_FIELDS = ('CatalogID', 'ItemName', 'ItemDescription', 'Quantity', 'ItemPrice')

# Shipping field -> billing field it defaults to
SHIPPING_FALLBACKS = {
    'ShippingFirstName': 'BillingFirstName',
    'ShippingLastName': 'BillingLastName',
    'ShippingCompany': 'BillingCompany',
    'ShippingAddress': 'BillingAddress',
    'ShippingAddress2': 'BillingAddress2',
    'ShippingCity': 'BillingCity',
    'ShippingState': 'BillingState',
    'ShippingZipCode': 'BillingZipCode',
    'ShippingCountry': 'BillingCountry',
}

EXCEL_ENGINES = {
    'xlsx': 'openpyxl',
    'xls': 'xlrd',
}

_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9._-]')


def _to_float(value: Any, field: str) -> float:
    try:
        return float(str(value).replace(',', '').replace('$', '').strip())
    except ValueError:
        raise ValueError(f"Invalid numeric value for {field}: {value}")


def map_headers(columns: List[Any]) -> Dict[Any, str]:
    """Map file column names to 3DCart field names; unknown columns are left out."""
    mapping = {}
    for column in columns:
        key = str(column).strip().lower()
        field = CSV_FIELD_MAPPING.get(key) or CSV_FIELD_MAPPING.get(key.replace(' ', '_'))
        if field:
            mapping[column] = field
    return mapping


def normalize_order_data(data: Dict[str, Any], row_number: Optional[int] = None) -> Dict[str, Any]:
    """
    Turn one mapped file row into a 3DCart-shaped order.

    Args:
        data: Row values keyed by 3DCart field name (blank cells omitted)
        row_number: Spreadsheet row number, kept as _row_number

    Raises:
        ValueError: A numeric column holds a non-numeric value
    """
    order_total = _to_float(data.get('OrderTotal', 0), 'OrderTotal')

    normalized = {
        'OrderID': data.get('OrderID') or f"{MANUAL_ORDER_PREFIX}{uuid.uuid4().hex[:13]}",
        'CustomerID': data.get('CustomerID', ''),
        'OrderDate': data.get('OrderDate') or now_local_str(),
        'OrderStatusID': data.get('OrderStatusID') or 1,
        'OrderTotal': order_total,
        'ShippingCost': _to_float(data.get('ShippingCost', 0), 'ShippingCost'),
        'SalesTax': _to_float(data.get('SalesTax', 0), 'SalesTax'),
        'BillingFirstName': data.get('BillingFirstName', ''),
        'BillingLastName': data.get('BillingLastName', ''),
        'BillingEmail': data.get('BillingEmail', ''),
        'BillingCompany': data.get('BillingCompany', ''),
        'BillingPhoneNumber': data.get('BillingPhoneNumber', ''),
        'BillingAddress': data.get('BillingAddress', ''),
        'BillingAddress2': data.get('BillingAddress2', ''),
        'BillingCity': data.get('BillingCity', ''),
        'BillingState': data.get('BillingState', ''),
        'BillingZipCode': data.get('BillingZipCode', ''),
        'BillingCountry': data.get('BillingCountry') or 'US',
    }

    for shipping_field, billing_field in SHIPPING_FALLBACKS.items():
        normalized[shipping_field] = data.get(shipping_field) or normalized[billing_field]

    if any(field in data for field in ITEM_FIELDS):
        item_name = data.get('ItemName', 'Manual Order Item')
        normalized['OrderItemList'] = [{
            'CatalogID': data.get('CatalogID', 'UNKNOWN'),
            'ItemName': item_name,
            'ItemDescription': data.get('ItemDescription', item_name),
            'Quantity': _to_float(data.get('Quantity', 1), 'Quantity'),
            'ItemPrice': _to_float(data.get('ItemPrice', order_total), 'ItemPrice'),
        }]
    else:
        normalized['OrderItemList'] = []

    if row_number is not None:
        normalized['_row_number'] = row_number

    return normalized


class OrderController:
    """Handles manual order file uploads."""

    def __init__(
        self,
        settings,
        order_sync: OrderSync,
        email_service: EmailService,
        logger: Optional[logging.Logger] = None
    ):
        self.settings = settings
        self.order_sync = order_sync
        self.email_service = email_service
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings, logger: Optional[logging.Logger] = None) -> "OrderController":
        """Build the controller with fresh vendor clients."""
        return cls(
            settings=settings,
            order_sync=OrderSync(NetSuiteClient.from_settings(settings), settings),
            email_service=EmailService(SendGridClient(settings.sendgrid_api_key), settings),
            logger=logger
        )

    def handle_file_upload(self, filename: Optional[str], content: Optional[bytes]) -> Dict[str, Any]:
        """
        Validate, store and process an uploaded order file.

        The stored copy is always removed afterwards.

        Args:
            filename: Client-supplied file name
            content: File bytes

        Returns:
            Processing results (see process_uploaded_file)

        Raises:
            FileUploadError: File rejected or unreadable
        """
        content = content or b''
        errors = validate_file_upload(filename, len(content), self.settings, content)
        if errors:
            self.logger.error(f"File upload rejected: {', '.join(errors)}")
            raise FileUploadError(f"File validation failed: {', '.join(errors)}", errors)

        upload_dir = self.settings.upload_path
        os.makedirs(upload_dir, exist_ok=True)

        safe_name = _UNSAFE_FILENAME_CHARS.sub('_', os.path.basename(filename))
        stored_name = f"orders_{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}_{safe_name}"
        file_path = os.path.join(upload_dir, stored_name)

        with open(file_path, 'wb') as handle:
            handle.write(content)
        self.logger.info(f"File uploaded successfully: {stored_name} ({len(content)} bytes)")

        try:
            results = self.process_uploaded_file(file_path, file_name=filename)
        finally:
            if os.path.exists(file_path):
                os.remove(file_path)

        return results

    def parse_file(self, file_path: str) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Read an order file into normalized orders.

        Returns:
            (orders, row errors) where row errors are rows that failed to
            normalize: {'order_id', 'row_number', 'error'}

        Raises:
            FileUploadError: Unsupported type or unreadable file
        """
        extension = os.path.splitext(file_path)[1].lower().lstrip('.')

        try:
            if extension == 'csv':
                df = pd.read_csv(file_path, dtype=str, keep_default_na=False, skipinitialspace=True)
            elif extension in EXCEL_ENGINES:
                df = pd.read_excel(
                    file_path,
                    dtype=str,
                    keep_default_na=False,
                    engine=EXCEL_ENGINES[extension]
                )
            else:
                raise FileUploadError(f"Unsupported file type: {extension}")
        except (ValueError, OSError, BadZipFile, InvalidFileException, XLRDError) as e:
            raise FileUploadError(f"Failed to parse file: {e}")

        headers = map_headers(list(df.columns))
        self.logger.debug(f"Mapped columns: {headers}")

        orders = []
        row_errors = []

        # Row 1 is the header
        for row_number, row in enumerate(df.to_dict(orient='records'), start=2):
            mapped = {}
            for column, field in headers.items():
                value = str(row.get(column, '')).strip()
                if value and field not in mapped:
                    mapped[field] = value

            if not mapped:
                continue

            try:
                orders.append(normalize_order_data(mapped, row_number))
            except ValueError as e:
                self.logger.warning(f"Skipping row {row_number}: {e}")
                row_errors.append({
                    'order_id': mapped.get('OrderID', 'unknown'),
                    'row_number': row_number,
                    'error': str(e),
                })

        return orders, row_errors

    def process_uploaded_file(self, file_path: str, file_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Parse an order file and sync every order in it.

        Args:
            file_path: Stored file
            file_name: Name shown in the summary email (defaults to the stored name)

        Returns:
            {'total', 'successful', 'failed', 'already_existing', 'errors',
            'processed_orders'}

        Raises:
            FileUploadError: File unreadable or contains no orders
        """
        file_name = file_name or os.path.basename(file_path)
        orders, row_errors = self.parse_file(file_path)

        if not orders:
            raise FileUploadError("No valid orders found in file", [e['error'] for e in row_errors])

        self.logger.info("=" * 60)
        self.logger.info(f"PROCESSING UPLOADED FILE: {file_name} ({len(orders)} orders)")
        self.logger.info("=" * 60)

        results = {
            'total': len(orders) + len(row_errors),
            'successful': 0,
            'failed': len(row_errors),
            'already_existing': 0,
            'errors': list(row_errors),
            'processed_orders': [],
        }

        for order_data in orders:
            order_id = order_data['OrderID']
            row_number = order_data.get('_row_number', 'unknown')
            log_order_event(self.logger, order_id, 'processing_started', {'row_number': row_number})

            try:
                result = self.order_sync.sync_order(order_data, manual=True)
            except Exception as e:
                results['failed'] += 1
                results['errors'].append({
                    'order_id': order_id,
                    'row_number': row_number,
                    'error': str(e),
                })
                log_order_event(self.logger, order_id, 'processing_failed', {
                    'row_number': row_number,
                    'error': str(e),
                })
                continue

            if result.get('already_exists'):
                results['already_existing'] += 1
                status = 'already_exists'
            else:
                results['successful'] += 1
                status = 'created'
                log_order_event(self.logger, order_id, 'processing_completed', {
                    'row_number': row_number,
                    'netsuite_order_id': result['netsuite_order_id'],
                })

            results['processed_orders'].append({
                'order_id': order_id,
                'row_number': row_number,
                'netsuite_order_id': result['netsuite_order_id'],
                'customer_id': result['customer_id'],
                'status': status,
            })

        self.logger.info(
            f"Upload complete: {results['total']} rows, {results['successful']} created, "
            f"{results['already_existing']} already existing, {results['failed']} failed"
        )

        self.email_service.send_upload_summary(results, file_name)
        return results
