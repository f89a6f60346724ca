"""
SendGrid Mail API v3 client.
"""

import logging
from typing import Any, Dict, List, Optional

from cart_netsuite.clients.base_client import BaseAPIClient
from cart_netsuite.utils.error_handler import SendGridAPIError


class SendGridClient(BaseAPIClient):
    """Bearer-key client for sending HTML mail through SendGrid."""

    service_name = "SendGrid"
    error_class = SendGridAPIError

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.sendgrid.com",
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            logger=logger
        )

    def send_mail(
        self,
        subject: str,
        html_content: str,
        recipients: List[str],
        from_email: str,
        from_name: Optional[str] = None
    ) -> int:
        """
        Send one HTML message to all recipients.

        Returns:
            HTTP status code (202 when accepted)

        Raises:
            SendGridAPIError: If SendGrid rejects the message
        """
        sender: Dict[str, Any] = {'email': from_email}
        if from_name:
            sender['name'] = from_name

        payload = {
            'personalizations': [
                {'to': [{'email': recipient.strip()} for recipient in recipients]}
            ],
            'from': sender,
            'subject': subject,
            'content': [{'type': 'text/html', 'value': html_content}],
        }

        response = self._make_request("POST", "/v3/mail/send", json=payload)
        return response.status_code

    def test_connection(self) -> Dict[str, Any]:
        """List the API key's scopes to validate it."""
        result = self._check_connection("GET", "/v3/scopes")
        result['service'] = self.service_name
        return result
