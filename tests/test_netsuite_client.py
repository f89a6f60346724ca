"""
Test NetSuite client.
"""

import base64
import hashlib
import hmac
import json
from urllib.parse import parse_qs, quote, urlparse

import pytest
import responses

from cart_netsuite.clients.netsuite_client import NetSuiteClient
from cart_netsuite.models.order import Order, OrderItem
from cart_netsuite.utils.error_handler import NetSuiteAPIError


NETSUITE_REST_URL = "https://1234567.suitetalk.api.netsuite.com/services/rest/record/v1"


@pytest.fixture
def netsuite_client(settings):
    return NetSuiteClient.from_settings(settings)


def _header_fields(header: str) -> dict:
    assert header.startswith('OAuth ')
    fields = {}
    for part in header[len('OAuth '):].split(', '):
        key, value = part.split('=', 1)
        fields[key] = value.strip('"')
    return fields


def _created(record_type: str, record_id: str, status: int = 204):
    responses.add(
        responses.POST,
        f"{NETSUITE_REST_URL}/{record_type}",
        status=status,
        headers={'Location': f"{NETSUITE_REST_URL}/{record_type}/{record_id}"}
    )


class TestOAuth:
    """Test the OAuth 1.0a header."""

    def test_rest_url_from_account(self, netsuite_client):
        assert netsuite_client.base_url == NETSUITE_REST_URL

    def test_header_fields(self, netsuite_client):
        header = netsuite_client.generate_oauth_header('GET', f"{NETSUITE_REST_URL}/customer", timestamp=1700000000, nonce='abc123')

        fields = _header_fields(header)
        assert fields['realm'] == '1234567'
        assert fields['oauth_consumer_key'] == 'ck'
        assert fields['oauth_token'] == 'tk'
        assert fields['oauth_signature_method'] == 'HMAC-SHA256'
        assert fields['oauth_timestamp'] == '1700000000'
        assert fields['oauth_nonce'] == 'abc123'
        assert fields['oauth_version'] == '1.0'

    def test_signature_known_answer(self, netsuite_client):
        url = f"{NETSUITE_REST_URL}/customer"
        params = (
            "oauth_consumer_key=ck&oauth_nonce=abc123&oauth_signature_method=HMAC-SHA256"
            "&oauth_timestamp=1700000000&oauth_token=tk&oauth_version=1.0"
        )
        base_string = "&".join(["GET", quote(url, safe='~-._'), quote(params, safe='~-._')])
        digest = hmac.new(b"cs&ts", base_string.encode(), hashlib.sha256).digest()
        expected = quote(base64.b64encode(digest).decode(), safe='~-._')

        header = netsuite_client.generate_oauth_header('GET', url, timestamp=1700000000, nonce='abc123')

        assert _header_fields(header)['oauth_signature'] == expected

    def test_signature_is_deterministic(self, netsuite_client):
        url = f"{NETSUITE_REST_URL}/customer"
        first = netsuite_client.generate_oauth_header('GET', url, {'limit': 1}, timestamp=1, nonce='n')
        second = netsuite_client.generate_oauth_header('GET', url, {'limit': 1}, timestamp=1, nonce='n')

        assert first == second

    def test_query_params_are_signed(self, netsuite_client):
        url = f"{NETSUITE_REST_URL}/customer"
        plain = netsuite_client.generate_oauth_header('GET', url, timestamp=1, nonce='n')
        with_query = netsuite_client.generate_oauth_header('GET', url, {'q': "email IS 'a@b.com'"}, timestamp=1, nonce='n')

        assert _header_fields(plain)['oauth_signature'] != _header_fields(with_query)['oauth_signature']

    def test_nonce_changes_between_requests(self, netsuite_client):
        url = f"{NETSUITE_REST_URL}/customer"
        first = _header_fields(netsuite_client.generate_oauth_header('GET', url, timestamp=1))
        second = _header_fields(netsuite_client.generate_oauth_header('GET', url, timestamp=1))

        assert first['oauth_nonce'] != second['oauth_nonce']


class TestCustomers:
    """Test customer lookup and creation."""

    @responses.activate
    def test_find_customer_by_email(self, netsuite_client):
        responses.add(
            responses.GET, f"{NETSUITE_REST_URL}/customer",
            json={'items': [{'id': '501', 'email': 'jane.doe@example.com'}], 'count': 1}, status=200
        )

        customer = netsuite_client.find_customer_by_email('jane.doe@example.com')

        assert customer['id'] == '501'
        request = responses.calls[0].request
        params = parse_qs(urlparse(request.url).query)
        assert params['q'] == ["email IS 'jane.doe@example.com'"]
        assert params['limit'] == ['1']
        assert request.headers['Authorization'].startswith('OAuth realm="1234567"')

    @responses.activate
    def test_find_customer_not_found(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/customer", json={'items': [], 'count': 0}, status=200)

        assert netsuite_client.find_customer_by_email('nobody@example.com') is None

    @responses.activate
    def test_find_customer_escapes_quotes(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/customer", json={'items': []}, status=200)

        netsuite_client.find_customer_by_email("o'brien@example.com")

        params = parse_qs(urlparse(responses.calls[0].request.url).query)
        assert params['q'] == ["email IS 'o\\'brien@example.com'"]

    @responses.activate
    def test_create_customer_id_from_location(self, netsuite_client):
        _created('customer', '501')

        created = netsuite_client.create_customer({'email': 'jane.doe@example.com', 'firstName': 'Jane'})

        assert created['id'] == '501'
        assert json.loads(responses.calls[0].request.body)['firstName'] == 'Jane'

    @responses.activate
    def test_create_customer_without_id(self, netsuite_client):
        responses.add(responses.POST, f"{NETSUITE_REST_URL}/customer", status=204)

        with pytest.raises(NetSuiteAPIError, match="no id was returned"):
            netsuite_client.create_customer({'email': 'jane.doe@example.com'})

    @responses.activate
    def test_create_customer_rejected(self, netsuite_client):
        responses.add(
            responses.POST, f"{NETSUITE_REST_URL}/customer",
            json={'o:errorDetails': [{'detail': 'Invalid subsidiary'}]}, status=400
        )

        with pytest.raises(NetSuiteAPIError) as exc_info:
            netsuite_client.create_customer({'email': 'jane.doe@example.com'})

        assert exc_info.value.status_code == 400
        assert 'Invalid subsidiary' in str(exc_info.value)


class TestItems:
    """Test item resolution."""

    def _item(self):
        return OrderItem({'CatalogID': 'SKU-9', 'ItemName': 'Thing', 'Quantity': 1, 'ItemPrice': 12.5})

    @responses.activate
    def test_existing_item(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/item", json={'items': [{'id': 42}]}, status=200)

        assert netsuite_client.find_or_create_item(self._item()) == '42'
        assert len(responses.calls) == 1

    @responses.activate
    def test_creates_missing_item(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/item", json={'items': []}, status=200)
        _created('noninventorysaleitem', '77')

        item_id = netsuite_client.find_or_create_item(self._item())

        assert item_id == '77'
        body = json.loads(responses.calls[1].request.body)
        assert body['itemId'] == 'SKU-9'
        assert body['displayName'] == 'Thing'
        assert body['basePrice'] == 12.5
        assert body['subsidiary'] == {'items': [{'id': 1}]}

    @responses.activate
    def test_falls_back_to_default_item(self, settings):
        settings.netsuite_default_item_id = '999'
        client = NetSuiteClient.from_settings(settings)
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/item", json={'title': 'Bad request'}, status=400)

        assert client.find_or_create_item(self._item()) == '999'

    @responses.activate
    def test_raises_without_default_item(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/item", json={'items': []}, status=200)
        responses.add(responses.POST, f"{NETSUITE_REST_URL}/noninventorysaleitem", json={'title': 'Forbidden'}, status=403)

        with pytest.raises(NetSuiteAPIError):
            netsuite_client.find_or_create_item(self._item())


class TestSalesOrders:
    """Test sales order creation and lookup."""

    @responses.activate
    def test_create_sales_order(self, netsuite_client, sample_order):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/item", json={'items': [{'id': '11'}]}, status=200)
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/item", json={'items': [{'id': '12'}]}, status=200)
        _created('salesorder', '9001')

        created = netsuite_client.create_sales_order(Order(sample_order), '501')

        assert created['id'] == '9001'
        body = json.loads(responses.calls[-1].request.body)
        assert body['entity'] == {'id': '501'}
        assert body['externalId'] == '3DCART_12345'
        assert body['subsidiary'] == {'id': 1}
        assert body['location'] == {'id': 1}
        assert [line['item'] for line in body['item']['items']] == [{'id': '11'}, {'id': '12'}]

    @responses.activate
    def test_get_sales_order_by_external_id(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/salesorder", json={'items': [{'id': '9001'}]}, status=200)

        found = netsuite_client.get_sales_order_by_external_id('3DCART_12345')

        assert found == {'id': '9001'}
        params = parse_qs(urlparse(responses.calls[0].request.url).query)
        assert params['q'] == ["externalId IS '3DCART_12345'"]

    @responses.activate
    def test_connection(self, netsuite_client):
        responses.add(responses.GET, f"{NETSUITE_REST_URL}/customer", json={'items': []}, status=200)

        assert netsuite_client.test_connection()['success'] is True
