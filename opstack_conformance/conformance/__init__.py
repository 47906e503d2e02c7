from opstack_conformance.conformance.checker import (
    ConformanceChecker,
    ReceiptDiff,
)
from opstack_conformance.conformance.results import (
    ActivationReport,
    CheckResult,
    ConformanceSummary,
)
from opstack_conformance.conformance.source import (
    ChainDataSource,
    StaticChainSource,
)

__all__ = [
    "ConformanceChecker",
    "ReceiptDiff",
    "ActivationReport",
    "CheckResult",
    "ConformanceSummary",
    "ChainDataSource",
    "StaticChainSource",
]
