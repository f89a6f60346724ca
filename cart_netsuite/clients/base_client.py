"""
Shared HTTP plumbing for the vendor REST clients.

Each client owns a requests.Session with a urllib3 retry adapter for
transient transport failures (429/5xx), times every call, logs it, and turns
non-2xx responses into the vendor's VendorAPIError subclass.
"""

import logging
import time
from typing import Any, Dict, Optional, Type

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cart_netsuite.utils.error_handler import VendorAPIError, handle_api_error, log_errors
from cart_netsuite.utils.logger import log_api_call


class BaseAPIClient:
    """
    Base class for the 3DCart, NetSuite and SendGrid clients.

    Subclasses set ``service_name`` and ``error_class`` and may override
    ``_auth_headers`` to sign individual requests.
    """

    service_name = "API"
    error_class: Type[VendorAPIError] = VendorAPIError

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        headers: Optional[Dict[str, str]] = None,
        max_retries: int = 3,
        logger: Optional[logging.Logger] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = logger or logging.getLogger(self.__class__.__module__)

        self.session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "PUT", "DELETE"],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        if headers:
            self.session.headers.update(headers)

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _auth_headers(self, method: str, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, str]:
        """Per-request authentication headers (none by default)."""
        return {}

    @log_errors
    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None
    ) -> requests.Response:
        """
        Make an HTTP request and log it.

        Args:
            method: HTTP method (GET, POST, PUT, ...)
            endpoint: Path relative to the client's base URL
            params: Query string parameters
            json: JSON body

        Returns:
            Response object (2xx only)

        Raises:
            VendorAPIError subclass: on transport failure or non-2xx status
        """
        url = self._url(endpoint)
        headers = self._auth_headers(method, url, params)

        start = time.monotonic()
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            duration = (time.monotonic() - start) * 1000
            log_api_call(self.logger, self.service_name, endpoint, method, None, duration)
            raise self.error_class(f"{method} {endpoint} request failed: {str(e)}")

        duration = (time.monotonic() - start) * 1000
        log_api_call(self.logger, self.service_name, endpoint, method, response.status_code, duration)

        if not response.ok:
            handle_api_error(response, self.service_name, context=f"{method} {endpoint}")

        return response

    def _check_connection(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run a lightweight request and report reachability.

        Returns:
            {'success', 'status_code', 'response_time'} or {'success', 'error', 'status_code'}
        """
        start = time.monotonic()
        try:
            response = self._make_request(method, endpoint, params=params)
            duration = (time.monotonic() - start) * 1000
            self.logger.info(f"✓ {self.service_name} connection successful")
            return {
                'success': True,
                'status_code': response.status_code,
                'response_time': f"{duration:.2f}ms"
            }
        except VendorAPIError as e:
            self.logger.error(f"✗ {self.service_name} connection failed: {e}")
            return {
                'success': False,
                'error': str(e),
                'status_code': e.status_code
            }

    @staticmethod
    def _json(response: requests.Response) -> Any:
        """Decoded body, or None for empty (204) responses."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None
