"""
Pytest configuration and shared fixtures.

This module provides synthetic blocks and receipts that are consistent
with one rule variant, so checks can be exercised without a node.
"""

from typing import Callable, Optional, Tuple
from unittest.mock import MagicMock

import pytest

from opstack_conformance.conformance.source import StaticChainSource
from opstack_conformance.fees.base_fee import compute_base_fee
from opstack_conformance.receipts.encoder import encode_receipts
from opstack_conformance.receipts.trie import receipts_root
from opstack_conformance.shared.constants import ChainConstants
from opstack_conformance.shared.types import (
    BlockInfo,
    Log,
    Receipt,
    RuleVariant,
)

SAMPLE_HEIGHT = 111253022
SAMPLE_ELASTICITY = 6
ZERO_BLOOM = bytes(ChainConstants.BLOOM_BYTE_LENGTH)


@pytest.fixture
def sample_height() -> int:
    return SAMPLE_HEIGHT


@pytest.fixture
def sample_elasticity() -> int:
    return SAMPLE_ELASTICITY


@pytest.fixture
def sample_log() -> Log:
    return Log(
        address=bytes.fromhex("4200000000000000000000000000000000000015"),
        topics=(bytes.fromhex("ab" * 32), bytes.fromhex("cd" * 32)),
        data=bytes.fromhex("00" * 31 + "2a"),
    )


@pytest.fixture
def deposit_receipt() -> Receipt:
    """L1 attributes deposit, always the first receipt of an L2 block"""
    return Receipt(
        tx_type=ChainConstants.DEPOSIT_TX_TYPE,
        status=1,
        cumulative_gas_used=46_913,
        bloom=ZERO_BLOOM,
        deposit_nonce=7_654_321,
    )


@pytest.fixture
def sample_receipts(deposit_receipt, sample_log) -> Tuple[Receipt, ...]:
    return (
        deposit_receipt,
        Receipt(
            tx_type=2,
            status=1,
            cumulative_gas_used=98_001,
            logs=(sample_log,),
        ),
        Receipt(
            tx_type=0,
            status=0,
            cumulative_gas_used=120_001,
            bloom=ZERO_BLOOM,
        ),
    )


@pytest.fixture
def parent_block(sample_height) -> BlockInfo:
    return BlockInfo(
        number=sample_height - 1,
        hash=bytes.fromhex("11" * 32),
        parent_hash=bytes.fromhex("10" * 32),
        gas_limit=30_000_000,
        gas_used=1_000_000,
        base_fee=1_000_000_000,
        receipts_root=ChainConstants.EMPTY_TRIE_ROOT,
        timestamp=1704412799,
    )


@pytest.fixture
def chain_factory(
    parent_block, sample_receipts, sample_height
) -> Callable[..., StaticChainSource]:
    """
    Build a two-block chain whose head follows the given rule variants.

    receipts_variant drives the committed receipts root, fee_variant the
    base fee. Passing None for fee_variant leaves the parent's fee.
    """

    def build(
        receipts_variant: RuleVariant,
        fee_variant: Optional[RuleVariant] = None,
        receipts: Optional[Tuple[Receipt, ...]] = None,
        include_parent: bool = True,
    ) -> StaticChainSource:
        fee_variant = fee_variant or receipts_variant
        receipts = sample_receipts if receipts is None else receipts
        block = BlockInfo(
            number=sample_height,
            hash=bytes.fromhex("22" * 32),
            parent_hash=parent_block.hash,
            gas_limit=30_000_000,
            gas_used=15_000_000,
            base_fee=compute_base_fee(
                parent_block, SAMPLE_ELASTICITY, fee_variant
            ),
            receipts_root=receipts_root(
                encode_receipts(receipts, receipts_variant)
            ),
            timestamp=1704412801,
        )
        blocks = [block, parent_block] if include_parent else [block]
        return StaticChainSource(blocks, {block.hash: receipts})

    return build


@pytest.fixture
def rpc_receipts():
    """eth_getTransactionReceipt responses, keyed by tx hash."""
    return {
        "0x" + "a1" * 32: {
            "type": 126,
            "status": 1,
            "cumulativeGasUsed": 46_913,
            "logsBloom": "0x" + "00" * 256,
            "logs": [],
            "depositNonce": "0x74cbb1",
            "depositReceiptVersion": "0x1",
        },
        "0x" + "a2" * 32: {
            "type": 2,
            "status": 1,
            "cumulativeGasUsed": 98_001,
            "logsBloom": "0x" + "00" * 256,
            "logs": [
                {
                    "address": "0x4200000000000000000000000000000000000015",
                    "topics": ["0x" + "ab" * 32],
                    "data": "0x",
                }
            ],
        },
    }


@pytest.fixture
def mock_w3(rpc_receipts):
    """Mock Web3 instance for adapter tests."""
    w3 = MagicMock()
    w3.eth.get_block.return_value = {
        "number": SAMPLE_HEIGHT,
        "hash": "0x" + "22" * 32,
        "parentHash": "0x" + "11" * 32,
        "gasLimit": 30_000_000,
        "gasUsed": 15_000_000,
        "baseFeePerGas": 984_000_000,
        "receiptsRoot": "0x" + "33" * 32,
        "timestamp": 1704412801,
        "transactions": list(rpc_receipts),
    }
    w3.eth.get_transaction_receipt.side_effect = lambda h: rpc_receipts[h]
    return w3


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line("markers", "slow: mark test as slow-running")
