"""EIP-1559 base fee recalculation under either rule variant"""

from opstack_conformance.shared.types import BlockInfo, RuleVariant


def gas_target(parent: BlockInfo, elasticity: int) -> int:
    if elasticity <= 0:
        raise ValueError(f"Elasticity must be positive, got {elasticity}")
    return parent.gas_limit // elasticity


def compute_base_fee(
    parent: BlockInfo, elasticity: int, variant: RuleVariant
) -> int:
    """
    Compute the base fee the block following `parent` must carry.

    Args:
        parent: Header of the parent block
        elasticity: EIP-1559 elasticity multiplier (gas limit / gas target)
        variant: Rule variant selecting the max change denominator

    Returns:
        Expected base fee in wei
    """
    target = gas_target(parent, elasticity)
    # Target usage leaves the base fee unchanged
    if parent.gas_used == target:
        return parent.base_fee

    if target == 0:
        raise ValueError(
            f"Gas limit {parent.gas_limit} is below elasticity {elasticity}"
        )

    denominator = variant.base_fee_denominator

    if parent.gas_used > target:
        # max(1, baseFee * gasUsedDelta / target / denominator)
        delta = parent.base_fee * (parent.gas_used - target)
        delta = delta // target // denominator
        return parent.base_fee + max(delta, 1)

    # max(0, baseFee - baseFee * gasUsedDelta / target / denominator)
    delta = parent.base_fee * (target - parent.gas_used)
    delta = delta // target // denominator
    return max(parent.base_fee - delta, 0)
