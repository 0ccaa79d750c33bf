"""
Contract helpers: artifacts, ABI encoding, deployment, instances and events.
"""

from .accounts import Accounts
from .artifacts import ContractArtifact, find_artifact, load_artifact
from .client import ContractInstance
from .deployer import deploy, send_transaction, wait_for_receipt
from .events import DecodedEvent, EventSubscription

__all__ = [
    "Accounts",
    "ContractArtifact",
    "load_artifact",
    "find_artifact",
    "ContractInstance",
    "deploy",
    "send_transaction",
    "wait_for_receipt",
    "DecodedEvent",
    "EventSubscription",
]
