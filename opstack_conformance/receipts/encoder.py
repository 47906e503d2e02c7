"""
Consensus encoding of transaction receipts for the receipts trie.

Layout per receipt (EIP-2718):
    legacy (type 0):  rlp([status, cumulativeGasUsed, bloom, logs])
    typed:            type || rlp([status, cumulativeGasUsed, bloom, logs])
    deposit + version:
                      0x7E || rlp([status, cumulativeGasUsed, bloom, logs,
                                   depositNonce, depositReceiptVersion])

Deposit receipts only commit their nonce and version once the version
marker is attached. Before the upgrade the marker is absent and deposits
hash like any other typed receipt.
"""

from typing import List, Sequence

import rlp

from opstack_conformance.receipts.bloom import logs_bloom
from opstack_conformance.shared.types import Receipt, RuleVariant


def _status_field(receipt: Receipt):
    if receipt.post_state is not None:
        return receipt.post_state
    return receipt.status


def _logs_field(receipt: Receipt) -> list:
    return [
        [log.address, list(log.topics), log.data] for log in receipt.logs
    ]


def encode_receipt(receipt: Receipt) -> bytes:
    """Encode one receipt exactly as it is inserted into the receipts trie"""
    bloom = receipt.bloom
    if bloom is None:
        bloom = logs_bloom(receipt.logs)

    fields: list = [
        _status_field(receipt),
        receipt.cumulative_gas_used,
        bloom,
        _logs_field(receipt),
    ]
    if receipt.is_deposit and receipt.deposit_receipt_version is not None:
        fields.append(receipt.deposit_nonce or 0)
        fields.append(receipt.deposit_receipt_version)

    payload = rlp.encode(fields)
    if receipt.tx_type == 0:
        return payload
    return bytes([receipt.tx_type]) + payload


def apply_variant(receipt: Receipt, variant: RuleVariant) -> Receipt:
    """Return the receipt as `variant` sees it; non-deposits are unchanged"""
    if not receipt.is_deposit:
        return receipt
    return receipt.with_deposit_version(variant.deposit_receipt_version)


def encode_receipts(
    receipts: Sequence[Receipt], variant: RuleVariant
) -> List[bytes]:
    """
    Encode a block's receipts under a rule variant, preserving order.

    Args:
        receipts: Receipts in transaction index order
        variant: LEGACY strips the deposit version marker,
            UPGRADED sets it to 1

    Returns:
        One encoded byte string per receipt
    """
    return [encode_receipt(apply_variant(r, variant)) for r in receipts]
