"""
Customer record derived from a 3DCart order.

MAPPING TO NETSUITE CUSTOMER:
- email -> email (PRIMARY MATCHING)
- firstname / lastname -> firstName / lastName
- company -> companyName (presence makes the customer a company)
- phone -> phone
- billing_address -> defaultAddress
"""

import logging
from typing import Any, Dict, List, Optional

from cart_netsuite.models.base_model import BaseRecord
from cart_netsuite.models.order import Order, address_to_netsuite
from cart_netsuite.utils.validator import (
    normalize_phone_digits,
    sanitize_email,
    sanitize_string,
    validate_customer_data,
)


logger = logging.getLogger(__name__)

COMPANY = 'company'
INDIVIDUAL = 'individual'


class Customer(BaseRecord):
    """Customer identity used to find or create the NetSuite customer."""

    @property
    def id(self) -> Any:
        return self.first_of('id', 'CustomerID', default=None)

    @property
    def email(self) -> str:
        return str(self.first_of('email', 'Email'))

    @property
    def first_name(self) -> str:
        return str(self.first_of('firstname', 'FirstName'))

    @property
    def last_name(self) -> str:
        return str(self.first_of('lastname', 'LastName'))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def company(self) -> str:
        return str(self.first_of('company', 'Company'))

    @property
    def phone(self) -> str:
        return str(self.first_of('phone', 'Phone'))

    @property
    def billing_address(self) -> Dict[str, Any]:
        return self.safe_get('billing_address', {})

    @property
    def shipping_address(self) -> Dict[str, Any]:
        return self.safe_get('shipping_address') or self.billing_address

    @property
    def customer_type(self) -> str:
        return COMPANY if self.company else INDIVIDUAL

    @classmethod
    def from_order_data(cls, order_data: Dict[str, Any]) -> "Customer":
        """Build the customer from an order's billing fields."""
        return cls(Order(order_data).customer)

    def validate(self) -> List[str]:
        return validate_customer_data(self.raw_data)

    def has_required_fields(self) -> bool:
        return not self.validate()

    def missing_fields(self) -> List[str]:
        """Names of the required fields that are missing."""
        marker = 'Missing required customer field: '
        return [
            error[len(marker):]
            for error in self.validate()
            if error.startswith(marker)
        ]

    def sanitize(self) -> "Customer":
        """Trim and truncate names, normalize email and phone in place."""
        self._data['firstname'] = sanitize_string(self.first_name, 50)
        self._data['lastname'] = sanitize_string(self.last_name, 50)
        self._data['company'] = sanitize_string(self.company, 100)
        # An invalid address is kept as-is so validation can report it
        self._data['email'] = sanitize_email(self.email) or self.email.strip()

        if self.phone:
            self._data['phone'] = ''.join(
                c for c in self.phone if c.isdigit() or c in '-+(). '
            ).strip()

        return self

    def matches(self, other: "Customer") -> bool:
        """
        Duplicate detection.

        Emails are compared case-insensitively when both records have one;
        otherwise full name and phone digits must both match.
        """
        if self.email and other.email:
            return self.email.strip().lower() == other.email.strip().lower()

        if self.phone and other.phone:
            same_name = self.full_name.lower() == other.full_name.lower()
            same_phone = normalize_phone_digits(self.phone) == normalize_phone_digits(other.phone)
            return same_name and same_phone

        return False

    def to_netsuite_format(self, subsidiary_id: Optional[int] = 1) -> Dict[str, Any]:
        """NetSuite customer record for POST /customer."""
        is_company = self.customer_type == COMPANY
        record = {
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'isPerson': not is_company,
        }

        if subsidiary_id is not None:
            record['subsidiary'] = {'id': subsidiary_id}
        if is_company:
            record['companyName'] = self.company
        if self.phone:
            record['phone'] = self.phone

        billing_address = self.billing_address
        if billing_address:
            record['defaultAddress'] = address_to_netsuite(billing_address)

        return record

    def summary(self) -> Dict[str, Any]:
        return {
            'customer_id': self.id,
            'email': self.email,
            'name': self.full_name,
            'company': self.company,
            'type': self.customer_type,
            'phone': self.phone,
        }
