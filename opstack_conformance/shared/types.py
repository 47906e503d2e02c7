"""
Core data types for conformance checks.

Blocks and receipts are immutable snapshots of what a node returned. They
are parsed from web3 responses once and never mutated afterwards; the
receipt encoder works on copies made with dataclasses.replace.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from hexbytes import HexBytes

from opstack_conformance.shared.constants import ChainConstants

HexLike = Union[str, bytes, bytearray, HexBytes, int, None]

# Raised by the from_rpc parsers on missing or ill-typed fields
MALFORMED_DATA_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class RuleVariant(Enum):
    """Rule set in force on either side of the Canyon upgrade."""

    LEGACY = "pre-canyon"
    UPGRADED = "post-canyon"

    @property
    def label(self) -> str:
        return self.value

    @property
    def base_fee_denominator(self) -> int:
        if self is RuleVariant.LEGACY:
            return ChainConstants.LEGACY_BASE_FEE_DENOMINATOR
        return ChainConstants.UPGRADED_BASE_FEE_DENOMINATOR

    @property
    def deposit_receipt_version(self) -> Optional[int]:
        if self is RuleVariant.LEGACY:
            return None
        return ChainConstants.DEPOSIT_RECEIPT_VERSION

    def opposite(self) -> "RuleVariant":
        if self is RuleVariant.LEGACY:
            return RuleVariant.UPGRADED
        return RuleVariant.LEGACY

    @classmethod
    def from_pre_upgrade(cls, pre_upgrade: bool) -> "RuleVariant":
        return cls.LEGACY if pre_upgrade else cls.UPGRADED


def to_int(value: HexLike) -> int:
    """Parse a quantity that web3 may hand back as int, hex string or bytes."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = value.strip()
        if value.lower().startswith("0x"):
            return int(value, 16) if len(value) > 2 else 0
        return int(value)
    return int.from_bytes(bytes(value), "big")


def to_optional_int(value: HexLike) -> Optional[int]:
    if value is None:
        return None
    return to_int(value)


def to_bytes(value: HexLike) -> bytes:
    if value is None:
        return b""
    if isinstance(value, int):
        raise TypeError("Expected hex data, got int")
    return bytes(HexBytes(value))


@dataclass(frozen=True)
class BlockInfo:
    """Header fields a conformance check needs from one block."""

    number: int
    hash: bytes
    parent_hash: bytes
    gas_limit: int
    gas_used: int
    base_fee: int
    receipts_root: bytes
    timestamp: int = 0

    @classmethod
    def from_rpc(cls, block: Mapping[str, Any]) -> "BlockInfo":
        """Build a BlockInfo from an eth_getBlockBy* response"""
        return cls(
            number=to_int(block["number"]),
            hash=to_bytes(block["hash"]),
            parent_hash=to_bytes(block.get("parentHash")),
            gas_limit=to_int(block["gasLimit"]),
            gas_used=to_int(block["gasUsed"]),
            base_fee=to_int(block.get("baseFeePerGas")),
            receipts_root=to_bytes(block["receiptsRoot"]),
            timestamp=to_int(block.get("timestamp")),
        )

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "hash": "0x" + self.hash.hex(),
            "parentHash": "0x" + self.parent_hash.hex(),
            "gasLimit": self.gas_limit,
            "gasUsed": self.gas_used,
            "baseFeePerGas": self.base_fee,
            "receiptsRoot": "0x" + self.receipts_root.hex(),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Log:
    address: bytes
    topics: Tuple[bytes, ...]
    data: bytes

    @classmethod
    def from_rpc(cls, log: Mapping[str, Any]) -> "Log":
        return cls(
            address=to_bytes(log["address"]),
            topics=tuple(to_bytes(t) for t in log.get("topics", [])),
            data=to_bytes(log.get("data")),
        )

    def to_dict(self) -> dict:
        return {
            "address": "0x" + self.address.hex(),
            "topics": ["0x" + t.hex() for t in self.topics],
            "data": "0x" + self.data.hex(),
        }


@dataclass(frozen=True)
class Receipt:
    """
    Consensus fields of a transaction receipt.

    Attributes:
        tx_type: EIP-2718 type byte (0 for legacy, 0x7E for deposits)
        status: 1 on success, 0 on failure (ignored if post_state is set)
        cumulative_gas_used: Gas used in the block up to and including this tx
        logs: Emitted logs, in order
        bloom: 256 byte logs bloom, recomputed from logs when absent
        post_state: Intermediate state root of pre-Byzantium receipts
        deposit_nonce: Nonce of the deposit, only set for deposit receipts
        deposit_receipt_version: Version marker, absent before the upgrade
    """

    tx_type: int
    status: int
    cumulative_gas_used: int
    logs: Tuple[Log, ...] = field(default_factory=tuple)
    bloom: Optional[bytes] = None
    post_state: Optional[bytes] = None
    deposit_nonce: Optional[int] = None
    deposit_receipt_version: Optional[int] = None

    @property
    def is_deposit(self) -> bool:
        return self.tx_type == ChainConstants.DEPOSIT_TX_TYPE

    def with_deposit_version(self, version: Optional[int]) -> "Receipt":
        return replace(self, deposit_receipt_version=version)

    @classmethod
    def from_rpc(cls, receipt: Mapping[str, Any]) -> "Receipt":
        """Build a Receipt from an eth_getTransactionReceipt style response"""
        bloom = receipt.get("logsBloom")
        root = receipt.get("root")
        return cls(
            tx_type=to_int(receipt.get("type")),
            status=to_int(receipt.get("status")),
            cumulative_gas_used=to_int(receipt["cumulativeGasUsed"]),
            logs=tuple(Log.from_rpc(log) for log in receipt.get("logs", [])),
            bloom=to_bytes(bloom) if bloom else None,
            post_state=to_bytes(root) if root else None,
            deposit_nonce=to_optional_int(receipt.get("depositNonce")),
            deposit_receipt_version=to_optional_int(
                receipt.get("depositReceiptVersion")
            ),
        )

    def to_dict(self) -> dict:
        out = {
            "type": hex(self.tx_type),
            "status": hex(self.status),
            "cumulativeGasUsed": hex(self.cumulative_gas_used),
            "logs": [log.to_dict() for log in self.logs],
        }
        if self.bloom is not None:
            out["logsBloom"] = "0x" + self.bloom.hex()
        if self.post_state is not None:
            out["root"] = "0x" + self.post_state.hex()
        if self.deposit_nonce is not None:
            out["depositNonce"] = hex(self.deposit_nonce)
        if self.deposit_receipt_version is not None:
            out["depositReceiptVersion"] = hex(self.deposit_receipt_version)
        return out


def receipts_from_rpc(receipts: Sequence[Mapping[str, Any]]) -> Tuple[Receipt, ...]:
    return tuple(Receipt.from_rpc(r) for r in receipts)
