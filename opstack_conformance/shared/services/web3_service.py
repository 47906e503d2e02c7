"""
Web3 Service module backing the conformance checks with a live node.

This module provides a Web3ChainSource class that reads block headers and
block receipts over JSON-RPC. Transient RPC failures are retried here
with backoff; anything still failing afterwards surfaces as
DataUnavailableException so callers can tell an unreachable node apart
from a conformance failure.
"""

from typing import Any, Callable, Optional, Sequence, Tuple

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception

from opstack_conformance.shared.constants import GlobalConstants
from opstack_conformance.shared.exceptions import DataUnavailableException
from opstack_conformance.shared.logging import get_logger
from opstack_conformance.shared.retry import RPC_RETRY_CONFIG, RetryConfig
from opstack_conformance.shared.types import (
    MALFORMED_DATA_ERRORS,
    BlockInfo,
    Receipt,
    receipts_from_rpc,
)

_logger = get_logger(__name__)

# web3 v6 still surfaces JSON-RPC errors as ValueError
_RPC_ERRORS = (Web3Exception, ConnectionError, TimeoutError, OSError, ValueError)


class Web3ChainSource:
    """
    Chain data source reading from an Ethereum JSON-RPC endpoint.

    Only eth_getBlockByNumber, eth_getBlockByHash and
    eth_getTransactionReceipt are used.
    """

    def __init__(
        self,
        rpc_url: str,
        retry_config: Optional[RetryConfig] = None,
        w3: Optional[Web3] = None,
    ):
        """
        Initialize the Web3ChainSource.

        Args:
            rpc_url (str): The RPC URL to use.
            retry_config (RetryConfig): Backoff for transient RPC failures.
            w3 (Web3): Pre-built Web3 instance, mostly for tests.
        """
        self.rpc_url = rpc_url
        self.retry_config = retry_config or RPC_RETRY_CONFIG
        self.w3 = w3 or self._initialize_web3(rpc_url)

    def _initialize_web3(self, rpc_url: str) -> Web3:
        return Web3(
            Web3.HTTPProvider(
                rpc_url,
                request_kwargs={"timeout": GlobalConstants.RPC_TIMEOUT},
            )
        )

    def _call(self, name: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return self.retry_config.call(fn, *args, operation_name=name)
        except _RPC_ERRORS as e:
            raise DataUnavailableException(
                f"{name} failed against {self.rpc_url}: {e}"
            ) from e

    def _parse(self, what: str, fn: Callable[..., Any], raw: Any) -> Any:
        try:
            return fn(raw)
        except MALFORMED_DATA_ERRORS as e:
            raise DataUnavailableException(
                f"Malformed {what} from {self.rpc_url}: "
                f"bad or missing field {e}"
            ) from e

    def info_by_number(self, height: int) -> BlockInfo:
        block = self._call("get_block", self.w3.eth.get_block, height)
        if block is None:
            raise DataUnavailableException(
                f"Block {height} not found", height=height
            )
        info = self._parse(f"block {height}", BlockInfo.from_rpc, block)
        _logger.debug(f"Fetched block {info.number} (0x{info.hash.hex()})")
        return info

    def fetch_receipts(
        self, block_hash: bytes
    ) -> Tuple[BlockInfo, Sequence[Receipt]]:
        block_id = HexBytes(block_hash)
        block = self._call("get_block", self.w3.eth.get_block, block_id)
        if block is None:
            raise DataUnavailableException(
                f"Block 0x{bytes(block_hash).hex()} not found"
            )
        # Receipts are fetched one by one in transaction index order
        raw_receipts = []
        for tx_hash in block.get("transactions", []):
            receipt = self._call(
                "get_transaction_receipt",
                self.w3.eth.get_transaction_receipt,
                tx_hash,
            )
            if receipt is None:
                raise DataUnavailableException(
                    f"Receipt for tx 0x{bytes(HexBytes(tx_hash)).hex()} "
                    f"unavailable"
                )
            raw_receipts.append(receipt)

        info = self._parse(
            f"block 0x{bytes(block_hash).hex()}", BlockInfo.from_rpc, block
        )
        receipts = self._parse(
            f"receipts of block {info.number}", receipts_from_rpc, raw_receipts
        )
        _logger.debug(
            f"Fetched {len(receipts)} receipts for block {info.number}"
        )
        return info, receipts
