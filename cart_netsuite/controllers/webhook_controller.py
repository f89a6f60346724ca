"""
Webhook controller.

Receives 3DCart order webhooks, fetches the full order and syncs it into
NetSuite under the configured retry policy, then reports the outcome by
email. Responses are (status_code, body) pairs; the HTTP layer only
serializes them.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from cart_netsuite.clients.netsuite_client import NetSuiteClient
from cart_netsuite.clients.sendgrid_client import SendGridClient
from cart_netsuite.clients.threedcart_client import ThreeDCartClient
from cart_netsuite.notifications.email_service import EmailService
from cart_netsuite.sync.order_sync import OrderSync
from cart_netsuite.utils.date_utils import now_iso
from cart_netsuite.utils.error_handler import (
    CustomerNotFoundError,
    IntegrationError,
    OrderValidationError,
    RetryPolicy,
    WebhookPayloadError,
)
from cart_netsuite.utils.logger import log_order_event


Response = Tuple[int, Dict[str, Any]]


def success_response(message: str, data: Any = None) -> Response:
    return 200, {
        'success': True,
        'message': message,
        'data': data if data is not None else {},
        'timestamp': now_iso(),
    }


def error_response(message: str, status_code: int = 400) -> Response:
    return status_code, {
        'success': False,
        'error': message,
        'timestamp': now_iso(),
    }


class WebhookController:
    """Processes 3DCart order webhooks and order ids given on the command line."""

    def __init__(
        self,
        settings,
        threedcart_client: ThreeDCartClient,
        order_sync: OrderSync,
        email_service: EmailService,
        retry_policy: Optional[RetryPolicy] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize webhook controller.

        Args:
            settings: Application settings
            threedcart_client: 3DCart API client
            order_sync: NetSuite order synchronization
            email_service: Notification emails
            retry_policy: Policy around each order; defaults to the configured
                attempts/delay, giving up at once on validation and
                customer-not-found errors
            logger: Logger to use; defaults to this module's logger
        """
        self.settings = settings
        self.threedcart = threedcart_client
        self.order_sync = order_sync
        self.email_service = email_service
        self.retry_policy = retry_policy or RetryPolicy.from_settings(
            settings,
            give_up_on=(OrderValidationError, CustomerNotFoundError)
        )
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings, logger: Optional[logging.Logger] = None) -> "WebhookController":
        """Build the controller with fresh vendor clients."""
        return cls(
            settings=settings,
            threedcart_client=ThreeDCartClient.from_settings(settings),
            order_sync=OrderSync(NetSuiteClient.from_settings(settings), settings),
            email_service=EmailService(SendGridClient(settings.sendgrid_api_key), settings),
            logger=logger
        )

    def handle_webhook(self, raw_payload: Union[bytes, str], signature: Optional[str] = None) -> Response:
        """
        Handle one webhook request.

        Args:
            raw_payload: Raw request body
            signature: X-Signature header value, if sent

        Returns:
            (status_code, JSON body): 200 processed, 400 bad payload,
            401 bad signature, 500 processing failure
        """
        if not raw_payload or not raw_payload.strip():
            return error_response('Empty payload', 400)

        if self.settings.webhook_secret and signature:
            if not self.threedcart.verify_webhook_signature(raw_payload, signature, self.settings.webhook_secret):
                self.logger.warning(f"Invalid webhook signature: {signature}")
                return error_response('Invalid signature', 401)

        try:
            webhook_data = self.threedcart.process_webhook_payload(raw_payload)
        except WebhookPayloadError as e:
            return error_response(str(e), 400)

        order_id = webhook_data['OrderID']
        self.logger.info(f"Processing webhook for order {order_id}")

        result = self.process_order(order_id)

        if result['success']:
            return success_response('Order processed successfully', result)
        return error_response(result['error'], 500)

    def _fetch_and_sync(self, order_id: Any) -> Dict[str, Any]:
        order_data = self.threedcart.get_order(order_id)
        return self.order_sync.sync_order(order_data)

    def _failure(self, order_id: Any, error: Exception) -> Dict[str, Any]:
        policy = self.retry_policy
        log_order_event(self.logger, order_id, 'processing_failed', {
            'error': str(error),
            'attempts': policy.attempts_made,
        })
        self.email_service.send_order_notification(order_id, 'Processing Failed', {
            'Error': str(error),
            'Attempts': policy.attempts_made,
            'Max Attempts': policy.max_attempts,
        })
        return {
            'success': False,
            'order_id': order_id,
            'error': str(error),
            'attempts': policy.attempts_made,
        }

    def process_order(self, order_id: Any) -> Dict[str, Any]:
        """
        Fetch an order from 3DCart and sync it, retrying the whole operation.

        Failures are reported in the result once retries are exhausted; errors
        outside the integration hierarchy also send an error notification.

        Returns:
            Sync result with 'success'; on failure 'error' and 'attempts'
        """
        log_order_event(self.logger, order_id, 'processing_started')
        policy = self.retry_policy

        try:
            result = policy.call(self._fetch_and_sync, order_id)
        except IntegrationError as e:
            return self._failure(order_id, e)
        except Exception as e:
            self.logger.error(f"Unexpected error processing order {order_id}: {e}", exc_info=True)
            self.email_service.send_error_notification(
                f"Order processing failed: {e}",
                {'order_id': order_id, 'attempts': policy.attempts_made}
            )
            return self._failure(order_id, e)

        if result.get('already_exists'):
            result['message'] = 'Order already exists'
            log_order_event(self.logger, order_id, 'already_exists', {
                'netsuite_order_id': result['netsuite_order_id'],
            })
            return result

        result['message'] = 'Order processed successfully'
        log_order_event(self.logger, order_id, 'processing_completed', {
            'netsuite_order_id': result['netsuite_order_id'],
            'customer_id': result['customer_id'],
        })
        self.email_service.send_order_notification(order_id, 'Successfully Processed', {
            'NetSuite Order ID': result['netsuite_order_id'],
            'Customer ID': result['customer_id'],
            'New Customer': 'Yes' if result.get('customer_created') else 'No',
            'Attempts': policy.attempts_made,
        })
        return result

    def process_batch_orders(self, order_ids: List[Any]) -> Dict[str, Any]:
        """
        Process orders one after another.

        Earlier successes are kept when a later order fails.

        Returns:
            {'success', 'results': {order_id: result}, 'summary': {...}}
        """
        results = {}
        successful = 0
        failed = 0

        for order_id in order_ids:
            result = self.process_order(order_id)
            results[str(order_id)] = result
            if result['success']:
                successful += 1
            else:
                failed += 1

        total = len(order_ids)
        self.logger.info(f"Batch processing completed: {total} orders, {successful} successful, {failed} failed")

        rate = (successful / total * 100) if total else 0.0
        self.email_service.send_order_notification('Batch', 'Batch Processing Completed', {
            'Total Orders': total,
            'Successful': successful,
            'Failed': failed,
            'Success Rate': f"{rate:.2f}%",
        })

        return {
            'success': failed == 0,
            'results': results,
            'summary': {
                'total': total,
                'successful': successful,
                'failed': failed,
            },
        }
