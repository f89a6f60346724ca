"""
3DCart REST API client (v2).

Authentication uses the PrivateKey and Token headers issued to the
integration. Webhook signatures are hex HMAC-SHA256 digests of the raw
request body keyed with the shared webhook secret.
"""

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, List, Optional, Union

from cart_netsuite.clients.base_client import BaseAPIClient
from cart_netsuite.utils.error_handler import ThreeDCartAPIError, WebhookPayloadError
from cart_netsuite.utils.logger import log_webhook


class ThreeDCartClient(BaseAPIClient):
    """
    Client for the 3DCart REST API v2.

    Handles:
    - Authentication: PrivateKey + Token headers
    - Orders: fetch one, list with filters, update status
    - Customers: fetch one
    - Webhooks: signature verification and payload parsing
    """

    service_name = "3DCart"
    error_class = ThreeDCartAPIError

    def __init__(
        self,
        store_url: str,
        private_key: str,
        token: str,
        webhook_secret: Optional[str] = None,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize 3DCart API client.

        Args:
            store_url: Store URL; the API lives under /3dCartWebAPI/v2
            private_key: Application private key
            token: Store access token
            webhook_secret: Default secret for webhook signature checks
            timeout: Request timeout in seconds
        """
        super().__init__(
            base_url=f"{store_url.rstrip('/')}/3dCartWebAPI/v2",
            timeout=timeout,
            headers={
                "PrivateKey": private_key,
                "Token": token,
            },
            logger=logger
        )
        self.webhook_secret = webhook_secret
        self.logger.info("3DCart client initialized")

    @classmethod
    def from_settings(cls, settings, logger: Optional[logging.Logger] = None) -> "ThreeDCartClient":
        return cls(
            store_url=settings.threedcart_store_url,
            private_key=settings.threedcart_private_key,
            token=settings.threedcart_token,
            webhook_secret=settings.webhook_secret,
            timeout=settings.threedcart_timeout,
            logger=logger
        )

    @staticmethod
    def _single(data: Any) -> Dict[str, Any]:
        """The API answers single-record GETs with a one-element list."""
        if isinstance(data, list):
            return data[0] if data else {}
        return data or {}

    # ========================================================================
    # Orders
    # ========================================================================

    def get_order(self, order_id: Union[int, str]) -> Dict[str, Any]:
        """
        Fetch a single order with its items.

        Raises:
            ThreeDCartAPIError: If the order can't be retrieved
        """
        try:
            response = self._make_request("GET", f"/Orders/{order_id}")
        except ThreeDCartAPIError as e:
            self.logger.error(f"Failed to retrieve order {order_id} from 3DCart: {e}")
            raise

        order_data = self._single(self._json(response))
        if not order_data:
            raise ThreeDCartAPIError(f"Order {order_id} not found", status_code=response.status_code)

        self.logger.info(
            f"Retrieved order {order_id} from 3DCart "
            f"(customer {order_data.get('CustomerID')})"
        )
        return order_data

    def get_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        List orders.

        Args:
            filters: Query filters (orderstatus, datestart, dateend, ...);
                limit and offset default to 50 and 0

        Returns:
            List of order records
        """
        params = {'limit': 50, 'offset': 0}
        if filters:
            params.update(filters)

        response = self._make_request("GET", "/Orders", params=params)
        orders = self._json(response) or []

        self.logger.info(f"Retrieved {len(orders)} orders from 3DCart (filters: {filters or {}})")
        return orders

    def update_order_status(
        self,
        order_id: Union[int, str],
        status_id: int,
        comments: str = ''
    ) -> Any:
        """
        Set an order's status, optionally with internal comments.

        Returns:
            Decoded API response
        """
        update_data: Dict[str, Any] = {'OrderStatusID': status_id}
        if comments:
            update_data['InternalComments'] = comments

        response = self._make_request("PUT", f"/Orders/{order_id}", json=update_data)

        self.logger.info(f"Updated order {order_id} status to {status_id} in 3DCart")
        return self._json(response)

    def get_order_statuses(self) -> List[Dict[str, Any]]:
        """Order status definitions configured in the store."""
        response = self._make_request("GET", "/OrderStatuses")
        return self._json(response) or []

    # ========================================================================
    # Customers
    # ========================================================================

    def get_customer(self, customer_id: Union[int, str]) -> Dict[str, Any]:
        """
        Fetch a single customer.

        Raises:
            ThreeDCartAPIError: If the customer can't be retrieved
        """
        response = self._make_request("GET", f"/Customers/{customer_id}")
        customer_data = self._single(self._json(response))

        self.logger.info(
            f"Retrieved customer {customer_id} from 3DCart ({customer_data.get('Email')})"
        )
        return customer_data

    # ========================================================================
    # Webhooks
    # ========================================================================

    def verify_webhook_signature(
        self,
        payload: Union[bytes, str],
        signature: str,
        secret: Optional[str] = None
    ) -> bool:
        """
        Check the hex HMAC-SHA256 signature of a webhook body.

        Args:
            payload: Raw request body
            signature: Value of the X-Signature header
            secret: Shared secret; defaults to the client's webhook secret
        """
        secret = secret or self.webhook_secret
        if not secret or not signature:
            return False

        if isinstance(payload, str):
            payload = payload.encode('utf-8')

        expected = hmac.new(secret.encode('utf-8'), payload, hashlib.sha256).hexdigest()
        # compare_digest only accepts ASCII str, so compare bytes
        received = signature.strip().lower().encode('utf-8', 'replace')
        return hmac.compare_digest(expected.encode('ascii'), received)

    def process_webhook_payload(self, payload: Union[bytes, str]) -> Dict[str, Any]:
        """
        Decode a webhook body.

        Raises:
            WebhookPayloadError: Invalid JSON or no OrderID
        """
        log_webhook(self.logger, '3DCart', 'order_webhook', {'payload_size': len(payload)})

        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            snippet = payload[:500] if isinstance(payload, str) else payload[:500].decode('utf-8', 'replace')
            self.logger.error(f"Failed to process 3DCart webhook payload: {e} | payload={snippet}")
            raise WebhookPayloadError(f"Invalid JSON payload: {e}")

        # Some store versions post the order wrapped in a list
        if isinstance(data, list):
            data = data[0] if data else {}

        if not isinstance(data, dict) or not data.get('OrderID'):
            raise WebhookPayloadError("Missing OrderID in webhook payload")

        self.logger.info(
            f"Processed 3DCart webhook for order {data['OrderID']} "
            f"(event: {data.get('EventType', 'unknown')})"
        )
        return data

    # ========================================================================
    # Connection Test
    # ========================================================================

    def test_connection(self) -> Dict[str, Any]:
        """Fetch a single order to validate credentials and reachability."""
        return self._check_connection("GET", "/Orders", params={'limit': 1})
