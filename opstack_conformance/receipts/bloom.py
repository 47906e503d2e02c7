"""2048-bit logs bloom, for receipts fetched without one"""

from typing import Iterable

from eth_utils import keccak

from opstack_conformance.shared.constants import ChainConstants
from opstack_conformance.shared.types import Log

_BLOOM_BITS = ChainConstants.BLOOM_BYTE_LENGTH * 8


def _bloom_bits(value: bytes) -> Iterable[int]:
    digest = keccak(value)
    for i in (0, 2, 4):
        yield ((digest[i] << 8) | digest[i + 1]) & (_BLOOM_BITS - 1)


def logs_bloom(logs: Iterable[Log]) -> bytes:
    bloom = 0
    for log in logs:
        for value in (log.address, *log.topics):
            for bit in _bloom_bits(value):
                bloom |= 1 << bit
    return bloom.to_bytes(ChainConstants.BLOOM_BYTE_LENGTH, "big")
