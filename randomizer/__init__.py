"""
Randomizer harness (Python)
Integration-test harness for the RandomizerTest randomness-oracle contract.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import HarnessConfig  # noqa: F401
from .errors import (  # noqa: F401
    AbiError,
    ArtifactError,
    DeployError,
    EventTimeout,
    HarnessError,
    ReceiptTimeout,
    RpcError,
    TxError,
)

# RPC
from .rpc.ws import WsClient  # noqa: F401

# Contracts
from .contracts.client import ContractInstance  # noqa: F401
from .contracts.events import DecodedEvent, EventSubscription  # noqa: F401

# Harness
from .harness.cases import CASES, OracleCase  # noqa: F401
from .harness.session import RandomizerHarness  # noqa: F401
from .harness.wait import sleep_ms  # noqa: F401

# Utilities
from .utils.bytes import pad_bytes32_hex  # noqa: F401
