"""
Order synchronization module.
Syncs one 3DCart order into a NetSuite sales order.

SYNC STEPS:
1. Validate the order (all errors collected, nothing is partially applied)
2. Derive the customer from the billing fields (email required)
3. Find the NetSuite customer by email, or create it when allowed
4. Skip orders already in NetSuite (externalId 3DCART_<OrderID>)
5. Create the sales order (items resolved by SKU)
"""

import logging
from typing import Any, Dict, Optional, Tuple

from cart_netsuite.clients.netsuite_client import NetSuiteClient
from cart_netsuite.models.customer import Customer
from cart_netsuite.models.order import Order
from cart_netsuite.utils.error_handler import (
    CustomerNotFoundError,
    NetSuiteAPIError,
    OrderValidationError,
)
from cart_netsuite.utils.logger import CUSTOMER_CREATED, CUSTOMER_EXISTING
from cart_netsuite.utils.validator import validate_netsuite_response


class OrderSync:
    """Handles 3DCart order to NetSuite sales order synchronization."""

    def __init__(
        self,
        netsuite_client: NetSuiteClient,
        settings,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize order sync.

        Args:
            netsuite_client: NetSuite API client
            settings: Application settings (auto_create_customers, subsidiary)
            logger: Logger to use; defaults to this module's logger
        """
        self.netsuite = netsuite_client
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)

    def get_or_create_customer(self, customer: Customer) -> Tuple[str, bool]:
        """
        Resolve the NetSuite customer for an order.

        Args:
            customer: Customer derived from the order

        Returns:
            (NetSuite customer id, whether it was created)

        Raises:
            CustomerNotFoundError: Not in NetSuite and auto-creation is off
            OrderValidationError: Customer fields are invalid for creation
        """
        # Lookup and creation both use the normalized (lower-cased) email
        customer.sanitize()
        existing = self.netsuite.find_customer_by_email(customer.email)
        if existing:
            customer_id = str(existing['id'])
            self.logger.info(f"{CUSTOMER_EXISTING}: {customer.email} (NetSuite id {customer_id})")
            return customer_id, False

        if not self.settings.auto_create_customers:
            raise CustomerNotFoundError(customer.email)

        errors = customer.validate()
        if errors:
            raise OrderValidationError("Customer validation failed", errors)

        created = self.netsuite.create_customer(
            customer.to_netsuite_format(subsidiary_id=self.settings.netsuite_subsidiary_id)
        )
        customer_id = str(created['id'])
        self.logger.info(f"{CUSTOMER_CREATED}: {customer.email} (NetSuite id {customer_id})")
        return customer_id, True

    def sync_order(self, order_data: Dict[str, Any], manual: bool = False) -> Dict[str, Any]:
        """
        Sync a single order.

        Args:
            order_data: 3DCart order payload or normalized upload row
            manual: Row came from a file upload (placeholder ids allowed,
                CustomerID not required)

        Returns:
            {'success', 'netsuite_order_id', 'customer_id', 'customer_created'}
            or {'success', 'already_exists', 'netsuite_order_id', ...}

        Raises:
            OrderValidationError: Order or customer data is invalid
            CustomerNotFoundError: Unknown customer and auto-creation is off
            NetSuiteAPIError: Any NetSuite call failed
        """
        order = Order(order_data)

        errors = order.validate(manual=manual)
        if errors:
            raise OrderValidationError("Order validation failed", errors)

        self.logger.debug(f"Syncing order {order.id}: {order.summary()}")

        customer = Customer.from_order_data(order_data)
        if not customer.email:
            raise OrderValidationError("Customer validation failed", ["Customer email is required"])

        customer_id, customer_created = self.get_or_create_customer(customer)

        existing = self.netsuite.get_sales_order_by_external_id(order.external_id)
        if existing:
            self.logger.info(
                f"Order {order.id} already exists in NetSuite as sales order {existing['id']}, skipping"
            )
            return {
                'success': True,
                'already_exists': True,
                'order_id': order.id,
                'netsuite_order_id': str(existing['id']),
                'customer_id': customer_id,
                'customer_created': customer_created,
            }

        created = self.netsuite.create_sales_order(order, customer_id)
        response_errors = validate_netsuite_response(created)
        if response_errors:
            raise NetSuiteAPIError(
                f"Sales order for order {order.id} was rejected",
                response='; '.join(response_errors)
            )

        self.logger.info(
            f"✅ Synced order {order.id} -> NetSuite sales order {created['id']} "
            f"(customer {customer_id}, total {order.total:.2f})"
        )
        return {
            'success': True,
            'already_exists': False,
            'order_id': order.id,
            'netsuite_order_id': str(created['id']),
            'customer_id': customer_id,
            'customer_created': customer_created,
        }
