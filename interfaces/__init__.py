# Author: Bradley R. Kinnard
# interfaces module exports - external collaborators of the transfer flow

from interfaces.ledger import (
    ContractCallError,
    InMemoryLedger,
    LedgerContract,
    TransferReceipt,
)
from interfaces.snarkjs_backend import SnarkjsBackend, SnarkjsConfig

__all__ = [
    "ContractCallError",
    "InMemoryLedger",
    "LedgerContract",
    "TransferReceipt",
    "SnarkjsBackend",
    "SnarkjsConfig",
]
