"""
Pytest configuration and fixtures for tests.

This module provides shared fixtures and configuration for all test modules.
"""

import pytest
from unittest.mock import Mock
from typing import Dict, Any

from cart_netsuite.clients.threedcart_client import ThreeDCartClient
from cart_netsuite.config import Settings


@pytest.fixture
def settings(tmp_path):
    """Real settings object with test credentials and temp directories."""
    return Settings(
        _env_file=None,
        threedcart_store_url="https://teststore.3dcart.com/",
        threedcart_private_key="test_private_key",
        threedcart_token="test_token",
        netsuite_account_id="1234567",
        netsuite_consumer_key="ck",
        netsuite_consumer_secret="cs",
        netsuite_token_id="tk",
        netsuite_token_secret="ts",
        sendgrid_api_key="SG.test_key",
        sendgrid_from_email="integration@example.com",
        notification_to_emails="ops@example.com, sales@example.com",
        notifications_enabled=True,
        webhook_secret=None,
        auto_create_customers=True,
        retry_attempts=2,
        retry_delay=0,
        upload_path=str(tmp_path / "uploads"),
        log_file=str(tmp_path / "logs" / "app.log"),
    )


@pytest.fixture
def sample_order() -> Dict[str, Any]:
    """Sample 3DCart order as returned by GET /Orders/{id}."""
    return {
        "OrderID": 12345,
        "CustomerID": 678,
        "OrderDate": "2024-03-15T10:30:00",
        "OrderStatusID": 1,
        "OrderTotal": 69.96,
        "SalesTax": 4.00,
        "ShippingCost": 5.99,
        "BillingFirstName": "Jane",
        "BillingLastName": "Doe",
        "BillingEmail": "jane.doe@example.com",
        "BillingCompany": "",
        "BillingPhoneNumber": "555-123-4567",
        "BillingAddress": "1 Main St",
        "BillingAddress2": "Apt 2",
        "BillingCity": "Springfield",
        "BillingState": "IL",
        "BillingZipCode": "62701",
        "BillingCountry": "US",
        "ShippingFirstName": "Jane",
        "ShippingLastName": "Doe",
        "ShippingAddress": "9 Elm St",
        "ShippingCity": "Shelbyville",
        "ShippingState": "IL",
        "ShippingZipCode": "62565",
        "OrderItemList": [
            {
                "CatalogID": "SKU-1",
                "ItemName": "Widget",
                "ItemDescription": "Blue widget",
                "Quantity": 2,
                "ItemPrice": 19.99,
            },
            {
                "CatalogID": "SKU-2",
                "ItemName": "Gadget",
                "Quantity": 1,
                "ItemPrice": 19.99,
            },
        ],
    }


@pytest.fixture
def threedcart_client(settings):
    """Real 3DCart client (HTTP mocked per test with responses)."""
    return ThreeDCartClient.from_settings(settings)


@pytest.fixture
def mock_threedcart_client(threedcart_client, sample_order):
    """3DCart client with a mocked API; webhook parsing/verification stay real."""
    client = Mock()
    client.get_order = Mock(return_value=sample_order)
    client.test_connection = Mock(return_value={
        'success': True, 'status_code': 200, 'response_time': '12.00ms'
    })
    client.verify_webhook_signature = threedcart_client.verify_webhook_signature
    client.process_webhook_payload = threedcart_client.process_webhook_payload
    return client


@pytest.fixture
def mock_netsuite_client():
    """Mock NetSuite client: unknown customer, no existing order."""
    client = Mock()
    client.find_customer_by_email = Mock(return_value=None)
    client.create_customer = Mock(return_value={"id": "501"})
    client.get_sales_order_by_external_id = Mock(return_value=None)
    client.create_sales_order = Mock(return_value={"id": "9001"})
    client.test_connection = Mock(return_value={
        'success': True, 'status_code': 200, 'response_time': '30.00ms'
    })
    return client


@pytest.fixture
def mock_email_service():
    """Mock email service that always reports success."""
    service = Mock()
    service.send_order_notification = Mock(return_value=True)
    service.send_error_notification = Mock(return_value=True)
    service.send_upload_summary = Mock(return_value=True)
    service.send_connection_alert = Mock(return_value=True)
    service.send_daily_summary = Mock(return_value=True)
    service.test_connection = Mock(return_value={
        'success': True, 'status_code': 200, 'response_time': '8.00ms'
    })
    return service
