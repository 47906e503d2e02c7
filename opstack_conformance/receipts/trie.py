"""Receipts trie root derivation"""

from typing import Sequence

import rlp
from trie import HexaryTrie

from opstack_conformance.shared.constants import ChainConstants

EMPTY_TRIE_ROOT = ChainConstants.EMPTY_TRIE_ROOT


def index_key(index: int) -> bytes:
    """Trie key of a list position: rlp of the index, 0 -> 0x80"""
    return rlp.encode(index)


def receipts_root(entries: Sequence[bytes]) -> bytes:
    """
    Build a fresh hexary trie keyed by list position and return its root.

    Args:
        entries: Encoded values in list order

    Returns:
        32 byte Keccak root; EMPTY_TRIE_ROOT for an empty list
    """
    t = HexaryTrie(db={})
    for i, value in enumerate(entries):
        t.set(index_key(i), bytes(value))
    return t.root_hash
