"""
Unit tests for the retry utilities module.
"""

from unittest.mock import MagicMock, patch

import pytest
from web3.exceptions import BlockNotFound

from opstack_conformance.shared.exceptions import (
    ConformanceMismatchException,
    DataUnavailableException,
)
from opstack_conformance.shared.retry import (
    RPC_RETRY_CONFIG,
    RetryConfig,
    retry_sync_operation,
)


class TestRetrySyncOperation:
    """Tests for retry_sync_operation."""

    def test_succeeds_first_try(self):
        mock_fn = MagicMock(return_value="success")

        assert retry_sync_operation(mock_fn, max_attempts=3) == "success"
        assert mock_fn.call_count == 1

    def test_succeeds_after_retry(self):
        mock_fn = MagicMock(
            side_effect=[ConnectionError("fail"), TimeoutError("fail"), "ok"]
        )

        result = retry_sync_operation(mock_fn, max_attempts=3, base_delay=0.0)

        assert result == "ok"
        assert mock_fn.call_count == 3

    def test_fails_after_max_attempts(self):
        mock_fn = MagicMock(side_effect=DataUnavailableException("always"))

        with pytest.raises(DataUnavailableException, match="always"):
            retry_sync_operation(mock_fn, max_attempts=3, base_delay=0.0)
        assert mock_fn.call_count == 3

    def test_passes_arguments_through(self):
        mock_fn = MagicMock(side_effect=[ConnectionError("fail"), 42])

        result = retry_sync_operation(
            mock_fn, "arg", max_attempts=2, base_delay=0.0, operation_name="op"
        )

        assert result == 42
        mock_fn.assert_called_with("arg")

    def test_exponential_backoff(self):
        mock_fn = MagicMock(
            side_effect=[ConnectionError("fail"), ConnectionError("fail"), "ok"]
        )

        with patch("opstack_conformance.shared.retry.time.sleep") as sleep:
            result = retry_sync_operation(
                mock_fn, max_attempts=3, base_delay=1.0, exponential=True
            )

        assert result == "ok"
        # base_delay * 2^0, base_delay * 2^1
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_delay_is_capped(self):
        mock_fn = MagicMock(side_effect=[OSError("fail")] * 3 + ["ok"])

        with patch("opstack_conformance.shared.retry.time.sleep") as sleep:
            result = retry_sync_operation(
                mock_fn, max_attempts=4, base_delay=20.0, max_delay=5.0
            )

        assert result == "ok"
        assert all(c.args[0] <= 5.0 for c in sleep.call_args_list)

    def test_non_retryable_propagates_immediately(self):
        error = ConformanceMismatchException("base_fee", "pre-canyon", 1, 2)
        mock_fn = MagicMock(side_effect=error)

        with pytest.raises(ConformanceMismatchException):
            retry_sync_operation(mock_fn, max_attempts=3, base_delay=0.0)
        assert mock_fn.call_count == 1

    def test_giveup_exception_not_retried(self):
        mock_fn = MagicMock(side_effect=BlockNotFound("gone"))

        with pytest.raises(BlockNotFound):
            retry_sync_operation(mock_fn, max_attempts=3, base_delay=0.0)
        assert mock_fn.call_count == 1

    def test_on_retry_callback(self):
        mock_fn = MagicMock(side_effect=[ConnectionError("fail"), "ok"])
        on_retry = MagicMock()

        retry_sync_operation(
            mock_fn, max_attempts=2, base_delay=0.0, on_retry=on_retry
        )

        on_retry.assert_called_once()
        assert on_retry.call_args.args[1] == 1

    def test_custom_retryable_exceptions(self):
        mock_fn = MagicMock(side_effect=KeyError("nope"))

        with pytest.raises(KeyError):
            retry_sync_operation(
                mock_fn,
                max_attempts=3,
                base_delay=0.0,
                retryable_exceptions=(ConnectionError,),
            )
        assert mock_fn.call_count == 1


class TestRetryConfig:
    def test_call_uses_settings(self):
        config = RetryConfig(max_attempts=2, base_delay=0.0)
        mock_fn = MagicMock(side_effect=ConnectionError("fail"))

        with pytest.raises(ConnectionError):
            config.call(mock_fn)
        assert mock_fn.call_count == 2

    def test_call_forwards_arguments(self):
        config = RetryConfig(max_attempts=2, base_delay=0.0)
        mock_fn = MagicMock(side_effect=[ConnectionError("fail"), "ok"])

        assert config.call(mock_fn, 7, operation_name="get_block") == "ok"
        mock_fn.assert_called_with(7)

    def test_rpc_config_defaults(self):
        assert RPC_RETRY_CONFIG.max_attempts >= 1
        assert RPC_RETRY_CONFIG.exponential is True
