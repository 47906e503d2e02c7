from opstack_conformance.fees.base_fee import compute_base_fee, gas_target

__all__ = ["compute_base_fee", "gas_target"]
