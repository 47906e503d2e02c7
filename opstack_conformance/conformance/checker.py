"""
Differential conformance checks across the Canyon upgrade boundary.

Each property (receipts root, base fee) is recomputed under both rule
variants. A node at a given height must agree with exactly one of them:
the assumed variant has to match and the opposite one has to disagree.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from opstack_conformance.conformance.results import (
    BASE_FEE,
    RECEIPTS_ROOT,
    ActivationReport,
    CheckResult,
    ConformanceSummary,
    ErrorSeverity,
)
from opstack_conformance.conformance.source import ChainDataSource
from opstack_conformance.fees.base_fee import compute_base_fee
from opstack_conformance.receipts.encoder import encode_receipts
from opstack_conformance.receipts.trie import receipts_root
from opstack_conformance.shared.constants import GlobalConstants
from opstack_conformance.shared.exceptions import ConformanceMismatchException
from opstack_conformance.shared.logging import get_logger
from opstack_conformance.shared.types import RuleVariant

_logger = get_logger(__name__)

CheckFn = Callable[[int, RuleVariant], CheckResult]


@dataclass
class ReceiptDiff:
    """A receipt whose encoding depends on the rule variant."""

    index: int
    tx_type: int
    legacy: bytes
    upgraded: bytes

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "type": hex(self.tx_type),
            "legacy": "0x" + self.legacy.hex(),
            "upgraded": "0x" + self.upgraded.hex(),
        }


class ConformanceChecker:
    """Runs receipt and base fee checks for both rule variants"""

    def __init__(
        self,
        source: ChainDataSource,
        elasticity: int = GlobalConstants.DEFAULT_ELASTICITY,
    ):
        if elasticity <= 0:
            raise ValueError(f"Elasticity must be positive, got {elasticity}")
        self.source = source
        self.elasticity = elasticity

    def validate_receipts(
        self, height: int, variant: RuleVariant
    ) -> CheckResult:
        """
        Check the block's receipts root against `variant`'s encoding.

        Raises:
            ConformanceMismatchException: The recomputed root differs
            DataUnavailableException: The block or receipts can't be fetched
        """
        block = self.source.info_by_number(height)
        _, receipts = self.source.fetch_receipts(block.hash)

        have = block.receipts_root
        want = receipts_root(encode_receipts(receipts, variant))
        _logger.debug(
            f"Block {height} receipts root as {variant.label}: "
            f"have 0x{have.hex()}, want 0x{want.hex()}"
        )
        if have != want:
            raise ConformanceMismatchException(
                RECEIPTS_ROOT, variant, want, have, height=height
            )
        return CheckResult(
            check=RECEIPTS_ROOT,
            variant=variant,
            block_number=height,
            expected=want,
            observed=have,
            matches=True,
        )

    def validate_1559_params(
        self,
        height: int,
        variant: RuleVariant,
        elasticity: Optional[int] = None,
    ) -> CheckResult:
        """
        Check the block's base fee against `variant`'s fee model.

        Raises:
            ConformanceMismatchException: The recomputed base fee differs
            DataUnavailableException: The block or its parent can't be fetched
        """
        if height <= 0:
            raise ValueError(f"Block {height} has no parent to derive a fee from")
        if elasticity is None:
            elasticity = self.elasticity
        if elasticity <= 0:
            raise ValueError(f"Elasticity must be positive, got {elasticity}")

        block = self.source.info_by_number(height)
        parent = self.source.info_by_number(height - 1)

        have = block.base_fee
        want = compute_base_fee(parent, elasticity, variant)
        _logger.debug(
            f"Block {height} base fee as {variant.label}: "
            f"have {have}, want {want}"
        )
        if have != want:
            raise ConformanceMismatchException(
                BASE_FEE, variant, want, have, height=height
            )
        return CheckResult(
            check=BASE_FEE,
            variant=variant,
            block_number=height,
            expected=want,
            observed=have,
            matches=True,
        )

    def check_activation(
        self,
        check_fn: CheckFn,
        height: int,
        assumed_variant: RuleVariant,
        check: Optional[str] = None,
    ) -> ActivationReport:
        """
        Run `check_fn` under the assumed variant and its opposite.

        The assumed variant must pass and the opposite must fail; anything
        else is recorded as a critical violation on the returned report.
        DataUnavailableException is not caught.
        """
        name = check or getattr(check_fn, "__name__", "check")
        report = ActivationReport(
            check=name, block_number=height, assumed_variant=assumed_variant
        )

        try:
            report.assumed = check_fn(height, assumed_variant)
        except ConformanceMismatchException as e:
            report.assumed = _mismatch_result(e, height)
            _logger.error(
                f"{assumed_variant.label} state was invalid when it was "
                f"expected to be valid: {e}"
            )
            report.add_violation(
                f"{assumed_variant.label} state was invalid when it was "
                f"expected to be valid: {e}",
                assumed_variant,
            )

        opposite = assumed_variant.opposite()
        try:
            report.opposite = check_fn(height, opposite)
        except ConformanceMismatchException as e:
            report.opposite = _mismatch_result(e, height)
            _logger.info(f"{opposite.label} mismatch as expected: {e}")
        else:
            _logger.error(
                f"{opposite.label} state was valid when it was expected "
                f"to be invalid"
            )
            report.add_violation(
                f"{opposite.label} state was valid when it was expected "
                f"to be invalid",
                opposite,
                severity=ErrorSeverity.ERROR,
            )

        return report

    def run(
        self,
        height: int,
        assumed_variant: RuleVariant,
        checks: Optional[List[str]] = None,
    ) -> ConformanceSummary:
        """
        Evaluate every requested property for one block.

        Properties are independent: a receipts root violation doesn't stop
        the base fee from being checked.
        """
        checks = checks or [RECEIPTS_ROOT, BASE_FEE]
        summary = ConformanceSummary(
            block_number=height,
            assumed_variant=assumed_variant,
            elasticity=self.elasticity,
        )

        check_fns = {
            RECEIPTS_ROOT: self.validate_receipts,
            BASE_FEE: self.validate_1559_params,
        }
        for name in checks:
            if name not in check_fns:
                raise ValueError(f"Unknown check: {name}")
            summary.reports.append(
                self.check_activation(
                    check_fns[name], height, assumed_variant, check=name
                )
            )

        return summary

    def explain_receipts(self, height: int) -> List[ReceiptDiff]:
        """List the receipts whose encoding differs between the variants"""
        block = self.source.info_by_number(height)
        _, receipts = self.source.fetch_receipts(block.hash)

        legacy = encode_receipts(receipts, RuleVariant.LEGACY)
        upgraded = encode_receipts(receipts, RuleVariant.UPGRADED)
        return [
            ReceiptDiff(
                index=i,
                tx_type=receipt.tx_type,
                legacy=legacy[i],
                upgraded=upgraded[i],
            )
            for i, receipt in enumerate(receipts)
            if legacy[i] != upgraded[i]
        ]


def _mismatch_result(
    error: ConformanceMismatchException, height: int
) -> CheckResult:
    return CheckResult(
        check=error.check,
        variant=error.variant,
        block_number=height,
        expected=error.expected,
        observed=error.observed,
        matches=False,
        error=str(error),
    )
