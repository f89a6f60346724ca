"""
3DCart order and order line records.

An Order is built from either a webhook/API order payload or a normalized
spreadsheet row, both using 3DCart field names (OrderID, BillingEmail,
OrderItemList, ...). It never changes after construction; the shipping
address falls back field by field to the billing address.

NETSUITE SALES ORDER MAPPING:
- OrderID -> externalId ("3DCART_<OrderID>") and memo
- OrderDate -> tranDate (YYYY-MM-DD)
- Billing* / Shipping* -> billAddress / shipAddress
- OrderItemList -> item[] (item id resolved by SKU, quantity, rate, description)
"""

import logging
from typing import Any, Dict, List, Optional

from cart_netsuite.models.base_model import BaseRecord
from cart_netsuite.utils.date_utils import to_netsuite_date
from cart_netsuite.utils.validator import validate_order_item, validate_threedcart_order


logger = logging.getLogger(__name__)

EXTERNAL_ID_PREFIX = '3DCART_'

# NetSuite "Pending Approval"
PENDING_APPROVAL = 'A'

ADDRESS_FIELDS = {
    'firstname': 'FirstName',
    'lastname': 'LastName',
    'company': 'Company',
    'address1': 'Address',
    'address2': 'Address2',
    'city': 'City',
    'state': 'State',
    'postal_code': 'ZipCode',
    'country': 'Country',
    'phone': 'PhoneNumber',
}


def external_id_for(order_id: Any) -> str:
    """NetSuite external id used as the idempotency key for an order."""
    return f"{EXTERNAL_ID_PREFIX}{order_id}"


def address_to_netsuite(address: Dict[str, Any]) -> Dict[str, Any]:
    """Map a normalized address dict to a NetSuite address subrecord."""
    return {
        'addr1': address.get('address1', ''),
        'addr2': address.get('address2', ''),
        'city': address.get('city', ''),
        'state': address.get('state', ''),
        'zip': address.get('postal_code', ''),
        'country': address.get('country') or 'US',
    }


class OrderItem(BaseRecord):
    """One order line."""

    @property
    def sku(self) -> str:
        return str(self.safe_get('CatalogID', ''))

    @property
    def name(self) -> str:
        return str(self.safe_get('ItemName', ''))

    @property
    def description(self) -> str:
        return str(self.safe_get('ItemDescription') or self.name)

    @property
    def quantity(self) -> float:
        return self.get_float('Quantity')

    @property
    def unit_price(self) -> float:
        return self.get_float('ItemPrice')

    @property
    def total_price(self) -> float:
        return self.quantity * self.unit_price

    @property
    def weight(self) -> float:
        return self.get_float('ItemWeight')

    def validate(self, index: Optional[int] = None) -> List[str]:
        return validate_order_item(self.raw_data, index)

    def to_netsuite_format(self, item_id: Optional[str] = None) -> Dict[str, Any]:
        """
        NetSuite sales order line.

        Without a resolved internal id the SKU is sent as the item's external id.
        """
        item_ref = {'id': item_id} if item_id is not None else {'externalId': self.sku}
        return {
            'item': item_ref,
            'quantity': self.quantity,
            'rate': self.unit_price,
            'description': self.description,
        }

    def summary(self) -> Dict[str, Any]:
        return {
            'sku': self.sku,
            'name': self.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'total_price': self.total_price,
        }


class Order(BaseRecord):
    """A 3DCart order normalized for NetSuite."""

    def __init__(self, order_data: Dict[str, Any]):
        super().__init__(order_data)
        self._items = self._parse_items()

    @property
    def id(self) -> Any:
        return self.safe_get('OrderID')

    @property
    def customer_id(self) -> Any:
        return self.safe_get('CustomerID')

    @property
    def order_date(self) -> Optional[str]:
        return self.safe_get('OrderDate')

    @property
    def status(self) -> Any:
        return self.safe_get('OrderStatusID')

    @property
    def total(self) -> float:
        return self.get_float('OrderTotal')

    @property
    def subtotal(self) -> float:
        """Sum of line totals, before tax and shipping."""
        return sum(item.total_price for item in self._items)

    @property
    def tax_amount(self) -> float:
        return self.get_float('SalesTax')

    @property
    def shipping_cost(self) -> float:
        return self.get_float('ShippingCost')

    @property
    def email(self) -> str:
        return str(self.safe_get('BillingEmail', ''))

    @property
    def external_id(self) -> str:
        return external_id_for(self.id)

    @property
    def billing_address(self) -> Dict[str, Any]:
        address = {
            key: self.safe_get(f'Billing{suffix}', '')
            for key, suffix in ADDRESS_FIELDS.items()
        }
        address['country'] = address['country'] or 'US'
        return address

    @property
    def shipping_address(self) -> Dict[str, Any]:
        address = {
            key: self.first_of(f'Shipping{suffix}', f'Billing{suffix}')
            for key, suffix in ADDRESS_FIELDS.items()
        }
        address['country'] = address['country'] or 'US'
        return address

    @property
    def items(self) -> List[OrderItem]:
        return list(self._items)

    @property
    def customer(self) -> Dict[str, Any]:
        """Customer fields derived from the billing section."""
        return {
            'id': self.customer_id,
            'email': self.email,
            'firstname': self.safe_get('BillingFirstName', ''),
            'lastname': self.safe_get('BillingLastName', ''),
            'company': self.safe_get('BillingCompany', ''),
            'phone': self.safe_get('BillingPhoneNumber', ''),
            'billing_address': self.billing_address,
            'shipping_address': self.shipping_address,
        }

    def _parse_items(self) -> List[OrderItem]:
        items = self.safe_get('OrderItemList', [])
        if not isinstance(items, list):
            return []
        return [OrderItem(item) for item in items if isinstance(item, dict)]

    def validate(self, manual: bool = False) -> List[str]:
        return validate_threedcart_order(self.raw_data, manual=manual)

    def to_netsuite_format(
        self,
        customer_id: Any,
        item_ids: Optional[List[Any]] = None,
        subsidiary_id: Optional[int] = None,
        location_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Build the NetSuite sales order body.

        Args:
            customer_id: NetSuite internal id of the customer
            item_ids: Resolved NetSuite item ids, one per order line
            subsidiary_id: Subsidiary to book the order under
            location_id: Fulfilment location

        Returns:
            Sales order record for POST /salesorder
        """
        if item_ids is not None and len(item_ids) != len(self._items):
            raise ValueError(
                f"Expected {len(self._items)} item ids, got {len(item_ids)}"
            )

        lines = [
            item.to_netsuite_format(item_ids[index] if item_ids is not None else None)
            for index, item in enumerate(self._items)
        ]

        sales_order = {
            'entity': {'id': customer_id},
            'tranDate': to_netsuite_date(self.order_date),
            'orderStatus': PENDING_APPROVAL,
            'externalId': self.external_id,
            'memo': f"Order imported from 3DCart - Order #{self.id}",
            'billAddress': address_to_netsuite(self.billing_address),
            'shipAddress': address_to_netsuite(self.shipping_address),
            'item': {'items': lines},
        }

        if subsidiary_id is not None:
            sales_order['subsidiary'] = {'id': subsidiary_id}
        if location_id is not None:
            sales_order['location'] = {'id': location_id}
        if self.shipping_cost:
            sales_order['shippingCost'] = self.shipping_cost

        return sales_order

    def summary(self) -> Dict[str, Any]:
        """Order summary for logging and notifications."""
        return {
            'order_id': self.id,
            'customer_id': self.customer_id,
            'customer_email': self.email,
            'order_date': self.order_date,
            'total': self.total,
            'item_count': len(self._items),
            'status': self.status,
        }
