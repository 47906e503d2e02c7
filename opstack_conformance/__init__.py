"""OP Stack conformance checker - tells which side of the Canyon upgrade a node is on."""

__version__ = "0.1.0"

from .conformance import ConformanceChecker, StaticChainSource
from .shared.types import BlockInfo, Receipt, RuleVariant

__all__ = [
    "ConformanceChecker",
    "StaticChainSource",
    "BlockInfo",
    "Receipt",
    "RuleVariant",
]
