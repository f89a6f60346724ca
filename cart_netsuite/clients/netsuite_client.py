"""
NetSuite SuiteTalk REST client.

Every request carries an OAuth 1.0a token-based-authentication header signed
with HMAC-SHA256. Record queries use the REST "q" filter syntax
(email IS 'x'); created records come back as 204 with a Location header
pointing at the new record.
"""

import base64
import hashlib
import hmac
import logging
import secrets
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from cart_netsuite.clients.base_client import BaseAPIClient
from cart_netsuite.models.order import Order, OrderItem
from cart_netsuite.utils.error_handler import NetSuiteAPIError, safe_get


def _encode(value: Any) -> str:
    """RFC 3986 percent-encoding as required by OAuth 1.0a."""
    return quote(str(value), safe='~-._')


def _escape_query_value(value: str) -> str:
    return str(value).replace("'", "\\'")


class NetSuiteClient(BaseAPIClient):
    """
    Client for the NetSuite SuiteTalk REST record API.

    Handles:
    - Authentication: OAuth 1.0a TBA, HMAC-SHA256, realm = account id
    - Customers: lookup by email, create
    - Items: lookup by item id (SKU), create as non-inventory item
    - Sales orders: create, lookup by external id
    """

    service_name = "NetSuite"
    error_class = NetSuiteAPIError

    def __init__(
        self,
        rest_url: str,
        account_id: str,
        consumer_key: str,
        consumer_secret: str,
        token_id: str,
        token_secret: str,
        subsidiary_id: Optional[int] = 1,
        location_id: Optional[int] = 1,
        default_item_id: Optional[str] = None,
        timeout: int = 60,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize NetSuite API client.

        Args:
            rest_url: Record API root (.../services/rest/record/v1)
            account_id: NetSuite account id, used as the OAuth realm
            consumer_key: Integration consumer key
            consumer_secret: Integration consumer secret
            token_id: Access token id
            token_secret: Access token secret
            subsidiary_id: Subsidiary for created customers, items and orders
            location_id: Location for created sales orders
            default_item_id: Item used when a line's item can't be resolved;
                None makes that a hard failure
            timeout: Request timeout in seconds
        """
        super().__init__(base_url=rest_url, timeout=timeout, logger=logger)
        self.account_id = account_id
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.token_id = token_id
        self.token_secret = token_secret
        self.subsidiary_id = subsidiary_id
        self.location_id = location_id
        self.default_item_id = default_item_id

        self.logger.info(f"NetSuite client initialized for account {account_id}")

    @classmethod
    def from_settings(cls, settings, logger: Optional[logging.Logger] = None) -> "NetSuiteClient":
        return cls(
            rest_url=settings.netsuite_rest_url,
            account_id=settings.netsuite_account_id,
            consumer_key=settings.netsuite_consumer_key,
            consumer_secret=settings.netsuite_consumer_secret,
            token_id=settings.netsuite_token_id,
            token_secret=settings.netsuite_token_secret,
            subsidiary_id=settings.netsuite_subsidiary_id,
            location_id=settings.netsuite_location_id,
            default_item_id=settings.netsuite_default_item_id,
            timeout=settings.netsuite_timeout,
            logger=logger
        )

    # ========================================================================
    # OAuth 1.0a
    # ========================================================================

    def generate_oauth_header(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timestamp: Optional[int] = None,
        nonce: Optional[str] = None
    ) -> str:
        """
        Build the OAuth Authorization header for one request.

        The signature base string is METHOD&url&params where params are the
        oauth_* values plus the query parameters, encoded and sorted.

        Args:
            method: HTTP method
            url: Request URL without query string
            params: Query parameters sent with the request
            timestamp: Fixed timestamp (tests); defaults to now
            nonce: Fixed nonce (tests); defaults to 32 random hex chars
        """
        oauth_params = {
            'oauth_consumer_key': self.consumer_key,
            'oauth_token': self.token_id,
            'oauth_signature_method': 'HMAC-SHA256',
            'oauth_timestamp': str(timestamp if timestamp is not None else int(time.time())),
            'oauth_nonce': nonce or secrets.token_hex(16),
            'oauth_version': '1.0',
        }

        all_params = [(_encode(k), _encode(v)) for k, v in oauth_params.items()]
        all_params.extend((_encode(k), _encode(v)) for k, v in (params or {}).items())
        all_params.sort()
        param_string = '&'.join(f"{k}={v}" for k, v in all_params)

        base_string = '&'.join([
            method.upper(),
            _encode(url),
            _encode(param_string),
        ])
        signing_key = f"{_encode(self.consumer_secret)}&{_encode(self.token_secret)}"

        digest = hmac.new(
            signing_key.encode('utf-8'),
            base_string.encode('utf-8'),
            hashlib.sha256
        ).digest()
        oauth_params['oauth_signature'] = base64.b64encode(digest).decode('ascii')

        parts = [f'realm="{self.account_id}"']
        parts.extend(f'{key}="{_encode(value)}"' for key, value in oauth_params.items())
        return 'OAuth ' + ', '.join(parts)

    def _auth_headers(self, method: str, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, str]:
        return {'Authorization': self.generate_oauth_header(method, url, params)}

    # ========================================================================
    # Helpers
    # ========================================================================

    def _query(self, record_type: str, condition: str) -> Optional[Dict[str, Any]]:
        """First record of a type matching a q filter, or None."""
        response = self._make_request(
            "GET",
            f"/{record_type}",
            params={'q': condition, 'limit': 1}
        )
        items = safe_get(self._json(response) or {}, 'items', default=[])
        return items[0] if items else None

    def _create(self, record_type: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a new record and return it with its internal id.

        The id is taken from the body when NetSuite returns one, otherwise
        from the trailing segment of the Location header.
        """
        response = self._make_request("POST", f"/{record_type}", json=record)
        created = self._json(response) or {}

        if not created.get('id'):
            location = response.headers.get('Location', '')
            record_id = location.rstrip('/').rsplit('/', 1)[-1] if location else None
            if not record_id:
                raise NetSuiteAPIError(
                    f"Created {record_type} but no id was returned",
                    status_code=response.status_code
                )
            created = dict(created, id=record_id)

        return created

    # ========================================================================
    # Customers
    # ========================================================================

    def find_customer_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Find a customer by exact email.

        Returns:
            Customer record if found, None otherwise

        Raises:
            NetSuiteAPIError: If the search fails
        """
        customer = self._query('customer', f"email IS '{_escape_query_value(email)}'")

        if customer:
            self.logger.info(f"Found existing customer in NetSuite: {email} (id {customer['id']})")
        else:
            self.logger.info(f"Customer not found in NetSuite: {email}")

        return customer

    def create_customer(self, customer_record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a customer.

        Args:
            customer_record: NetSuite customer body (Customer.to_netsuite_format())

        Returns:
            Created customer with its id
        """
        created = self._create('customer', customer_record)

        self.logger.info(
            f"Created customer in NetSuite: {customer_record.get('email')} "
            f"(id {created['id']})"
        )
        return created

    # ========================================================================
    # Items
    # ========================================================================

    def find_or_create_item(self, item: OrderItem) -> str:
        """
        Resolve the NetSuite item for an order line.

        Looks the SKU up by itemId, creates a non-inventory item when it
        doesn't exist, and falls back to the configured default item if
        either call fails.

        Raises:
            NetSuiteAPIError: Lookup/creation failed and no default item is set
        """
        try:
            existing = self._query('item', f"itemId IS '{_escape_query_value(item.sku)}'")
            if existing:
                return str(existing['id'])

            new_item = {
                'itemId': item.sku,
                'displayName': item.name,
                'salesDescription': item.description,
                'basePrice': item.unit_price,
                'includeChildren': False,
                'isInactive': False,
            }
            if self.subsidiary_id is not None:
                new_item['subsidiary'] = {'items': [{'id': self.subsidiary_id}]}

            created = self._create('noninventorysaleitem', new_item)
            self.logger.info(
                f"Created new item in NetSuite: {item.sku} ({item.name}) id {created['id']}"
            )
            return str(created['id'])

        except NetSuiteAPIError as e:
            if self.default_item_id is None:
                self.logger.error(f"Failed to find/create item {item.sku} and no default item configured: {e}")
                raise
            self.logger.warning(
                f"Failed to find/create item {item.sku}, using default item "
                f"{self.default_item_id}: {e}"
            )
            return str(self.default_item_id)

    # ========================================================================
    # Sales Orders
    # ========================================================================

    def create_sales_order(self, order: Order, customer_id: Any) -> Dict[str, Any]:
        """
        Create a sales order for a 3DCart order.

        Args:
            order: Validated order
            customer_id: NetSuite customer internal id

        Returns:
            Created sales order with its id
        """
        item_ids = [self.find_or_create_item(item) for item in order.items]

        sales_order = order.to_netsuite_format(
            customer_id,
            item_ids=item_ids,
            subsidiary_id=self.subsidiary_id,
            location_id=self.location_id
        )

        try:
            created = self._create('salesorder', sales_order)
        except NetSuiteAPIError as e:
            self.logger.error(
                f"Failed to create sales order for 3DCart order {order.id} "
                f"(customer {customer_id}): {e}"
            )
            raise

        self.logger.info(
            f"Created sales order in NetSuite: 3DCart order {order.id} -> "
            f"{created['id']} (customer {customer_id}, {len(item_ids)} items)"
        )
        return created

    def get_sales_order_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        """
        Find a sales order by external id (idempotency check).

        Raises:
            NetSuiteAPIError: If the lookup fails
        """
        return self._query('salesorder', f"externalId IS '{_escape_query_value(external_id)}'")

    # ========================================================================
    # Connection Test
    # ========================================================================

    def test_connection(self) -> Dict[str, Any]:
        """List a single customer to validate the token and reachability."""
        return self._check_connection("GET", "/customer", params={'limit': 1})
