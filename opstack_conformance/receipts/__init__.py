from opstack_conformance.receipts.encoder import encode_receipt, encode_receipts
from opstack_conformance.receipts.trie import EMPTY_TRIE_ROOT, receipts_root

__all__ = [
    "encode_receipt",
    "encode_receipts",
    "receipts_root",
    "EMPTY_TRIE_ROOT",
]
