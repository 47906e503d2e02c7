"""
Chain data source interface.

The checker only ever reads a block header by height and the receipts of
a block by hash. Anything that can answer those two questions (a live
node, a captured fixture) can back a check.
"""

import json
from pathlib import Path
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

from opstack_conformance.shared.exceptions import DataUnavailableException
from opstack_conformance.shared.types import (
    MALFORMED_DATA_ERRORS,
    BlockInfo,
    Receipt,
    receipts_from_rpc,
    to_bytes,
)

FIXTURE_VERSION = 1


class ChainDataSource(Protocol):
    def info_by_number(self, height: int) -> BlockInfo:
        ...

    def fetch_receipts(
        self, block_hash: bytes
    ) -> Tuple[BlockInfo, Sequence[Receipt]]:
        ...


class StaticChainSource:
    """In-memory chain data source over pre-fetched blocks and receipts"""

    def __init__(
        self,
        blocks: Iterable[BlockInfo],
        receipts: Mapping[bytes, Sequence[Receipt]],
    ):
        self._by_number: Dict[int, BlockInfo] = {}
        self._by_hash: Dict[bytes, BlockInfo] = {}
        for block in blocks:
            self._by_number[block.number] = block
            self._by_hash[block.hash] = block
        self._receipts = {
            bytes(h): tuple(rs) for h, rs in receipts.items()
        }

    def info_by_number(self, height: int) -> BlockInfo:
        try:
            return self._by_number[height]
        except KeyError:
            raise DataUnavailableException(
                f"Block {height} not found", height=height
            )

    def fetch_receipts(
        self, block_hash: bytes
    ) -> Tuple[BlockInfo, Sequence[Receipt]]:
        block = self._by_hash.get(bytes(block_hash))
        if block is None or block.hash not in self._receipts:
            raise DataUnavailableException(
                f"Receipts for block 0x{bytes(block_hash).hex()} not found"
            )
        return block, self._receipts[block.hash]

    @classmethod
    def from_fixture(cls, path: Union[str, Path]) -> "StaticChainSource":
        """
        Load a fixture written by `opstack-conformance capture`.

        Raises:
            DataUnavailableException: The file is missing, unreadable or
                doesn't hold well-formed blocks and receipts
            ValueError: The fixture was written in an unsupported format
        """
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataUnavailableException(
                f"Could not read fixture {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise DataUnavailableException(
                f"Malformed fixture {path}: expected a JSON object"
            )

        version = data.get("version", FIXTURE_VERSION)
        if version != FIXTURE_VERSION:
            raise ValueError(f"Unsupported fixture version: {version}")

        try:
            blocks = [BlockInfo.from_rpc(b) for b in data.get("blocks", [])]
            receipts = {
                to_bytes(h): receipts_from_rpc(rs)
                for h, rs in data.get("receipts", {}).items()
            }
        except MALFORMED_DATA_ERRORS as e:
            raise DataUnavailableException(
                f"Malformed fixture {path}: bad or missing field {e}"
            ) from e
        return cls(blocks, receipts)


def build_fixture(
    blocks: Sequence[BlockInfo],
    receipts: Mapping[bytes, Sequence[Receipt]],
) -> Dict[str, Any]:
    """Serialize blocks and receipts into the fixture format"""
    receipts_out: Dict[str, List[dict]] = {
        "0x" + bytes(h).hex(): [r.to_dict() for r in rs]
        for h, rs in receipts.items()
    }
    return {
        "version": FIXTURE_VERSION,
        "blocks": [b.to_dict() for b in blocks],
        "receipts": receipts_out,
    }
