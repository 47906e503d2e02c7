from urllib.parse import urlparse

from opstack_conformance.shared.exceptions import ConfigurationException


def validate_block_number(number: int) -> int:
    """Validate a block height that has a parent"""
    if number is None or number <= 0:
        raise ValueError(
            f"Invalid block number: {number}. Must be a positive integer"
        )
    return number


def validate_elasticity(elasticity: int) -> int:
    if elasticity is None or elasticity <= 0:
        raise ValueError(
            f"Invalid elasticity: {elasticity}. Must be a positive integer"
        )
    return elasticity


def validate_rpc_url(rpc_url: str) -> str:
    """Validate an HTTP(S) JSON-RPC endpoint"""
    if not rpc_url or not isinstance(rpc_url, str):
        raise ConfigurationException(
            "RPC URL must be a non-empty string (set --rpc-url or OP_RPC_URL)"
        )
    parsed = urlparse(rpc_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationException(
            f"Invalid RPC URL: {rpc_url}. Must be an http(s) endpoint"
        )
    return rpc_url
