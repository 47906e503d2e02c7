"""All constants for the project"""

import os

from dotenv import load_dotenv

load_dotenv()


class ChainConstants:
    """Protocol constants shared by the fee model and the receipt encoder"""

    # EIP-2718 type byte of OP Stack deposit transactions
    DEPOSIT_TX_TYPE = 0x7E

    # EIP-1559 base fee max change denominators
    LEGACY_BASE_FEE_DENOMINATOR = 50
    UPGRADED_BASE_FEE_DENOMINATOR = 250

    # Version committed for deposit receipts once the upgrade is active
    DEPOSIT_RECEIPT_VERSION = 1

    # keccak256(rlp(b""))
    EMPTY_TRIE_ROOT = bytes.fromhex(
        "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"
    )

    BLOOM_BYTE_LENGTH = 256


class GlobalConstants:
    """Global class constants for the project"""

    DEFAULT_RPC_URL = os.getenv("OP_RPC_URL") or "https://mainnet.optimism.io"

    DEFAULT_BLOCK_NUMBER = 111253022

    DEFAULT_ELASTICITY = int(os.getenv("OP_ELASTICITY", "6"))

    RPC_MAX_ATTEMPTS = int(os.getenv("OPC_RPC_MAX_ATTEMPTS", "10"))

    RPC_TIMEOUT = float(os.getenv("OPC_RPC_TIMEOUT", "30"))

    # EIP-1559 elasticity per network: 6 on mainnet/sepolia, 10 on goerli
    NETWORK_ELASTICITY = {
        "mainnet": 6,
        "sepolia": 6,
        "goerli": 10,
    }

    @staticmethod
    def get_elasticity(network: str) -> int:
        """Get the EIP-1559 elasticity for a named network"""
        network = network.lower()
        if network not in GlobalConstants.NETWORK_ELASTICITY:
            raise ValueError(f"Network {network} not supported")

        return GlobalConstants.NETWORK_ELASTICITY[network]
