"""
Test error classes, the retry policy and error helpers.
"""

import pytest
from unittest.mock import Mock

from cart_netsuite.utils.error_handler import (
    CustomerNotFoundError,
    IntegrationError,
    NetSuiteAPIError,
    OrderValidationError,
    RetryPolicy,
    ThreeDCartAPIError,
    handle_api_error,
    safe_get,
)


class TestExceptions:
    """Test exception messages."""

    def test_order_validation_error_lists_errors(self):
        error = OrderValidationError("Order validation failed", ["a", "b"])

        assert str(error) == "Order validation failed: a, b"
        assert error.errors == ["a", "b"]

    def test_customer_not_found_message(self):
        error = CustomerNotFoundError("jane@example.com")

        assert "auto-creation is disabled" in str(error)
        assert "jane@example.com" in str(error)

    def test_vendor_error_carries_status_and_response(self):
        error = NetSuiteAPIError("POST /customer failed", status_code=400, response='{"title": "Bad"}')

        assert isinstance(error, IntegrationError)
        assert error.status_code == 400
        assert str(error).startswith("NetSuite API Error: POST /customer failed")


class TestRetryPolicy:
    """Test the retry policy."""

    def test_returns_first_success(self):
        sleep = Mock()
        policy = RetryPolicy(max_attempts=3, delay=5, sleep=sleep)

        assert policy.call(lambda: 'ok') == 'ok'
        assert policy.attempts_made == 1
        sleep.assert_not_called()

    def test_retries_until_success(self):
        sleep = Mock()
        func = Mock(side_effect=[NetSuiteAPIError("down"), NetSuiteAPIError("down"), 'ok'])
        policy = RetryPolicy(max_attempts=4, delay=5, sleep=sleep)

        assert policy.call(func) == 'ok'
        assert policy.attempts_made == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(5)

    def test_raises_last_error_after_max_attempts(self):
        sleep = Mock()
        func = Mock(side_effect=ThreeDCartAPIError("timeout"))
        policy = RetryPolicy(max_attempts=3, delay=1, sleep=sleep)

        with pytest.raises(ThreeDCartAPIError):
            policy.call(func)

        assert func.call_count == 3
        assert policy.attempts_made == 3
        assert sleep.call_count == 2

    def test_give_up_on_is_not_retried(self):
        sleep = Mock()
        func = Mock(side_effect=OrderValidationError("Order validation failed", ["x"]))
        policy = RetryPolicy(max_attempts=3, give_up_on=(OrderValidationError,), sleep=sleep)

        with pytest.raises(OrderValidationError):
            policy.call(func)

        assert func.call_count == 1
        sleep.assert_not_called()

    def test_exceptions_outside_retry_on_propagate(self):
        func = Mock(side_effect=KeyError("id"))
        policy = RetryPolicy(max_attempts=3, retry_on=(IntegrationError,), sleep=Mock())

        with pytest.raises(KeyError):
            policy.call(func)

        assert func.call_count == 1

    def test_backoff_delay(self):
        policy = RetryPolicy(max_attempts=4, delay=2, backoff=3)

        assert [policy.compute_delay(n) for n in (1, 2, 3)] == [2, 6, 18]

    def test_jitter_is_bounded(self):
        policy = RetryPolicy(max_attempts=2, delay=1, jitter=0.5)

        for _ in range(20):
            assert 1 <= policy.compute_delay(1) <= 1.5

    def test_from_settings_counts_first_try(self, settings):
        policy = RetryPolicy.from_settings(settings)

        assert policy.max_attempts == settings.retry_attempts + 1
        assert policy.delay == settings.retry_delay
        assert policy.backoff == 1.0

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestHelpers:
    """Test error helper functions."""

    def test_handle_api_error_maps_vendor(self):
        response = Mock(status_code=404, text="Not found")
        response.json = Mock(side_effect=ValueError)

        with pytest.raises(ThreeDCartAPIError) as exc_info:
            handle_api_error(response, "3DCart")

        assert exc_info.value.status_code == 404

    def test_handle_api_error_unknown_api(self):
        response = Mock(status_code=500)
        response.json = Mock(return_value={'error': 'boom'})

        with pytest.raises(IntegrationError):
            handle_api_error(response, "Other")

    def test_safe_get(self):
        data = {'a': {'b': {'c': 123}}}

        assert safe_get(data, 'a', 'b', 'c') == 123
        assert safe_get(data, 'a', 'x', 'y', default=0) == 0
        assert safe_get(data, 'a', 'b', 'c', 'd', default='n/a') == 'n/a'
