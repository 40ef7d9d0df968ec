# Author: Bradley R. Kinnard
# ledger boundary - the confidential-balance contract transfers are submitted to

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

from phe import paillier

from crypto.homomorphic import add_ciphertexts
from utils.helpers import get_logger


logger = get_logger(__name__)


class ContractCallError(RuntimeError):
    """submission rejected, reverted, or no ledger to submit to."""
    pass


class LedgerContract(Protocol):
    """
    what the transfer flow needs from the ledger contract.

    transfer() takes exactly the circuit's first four public signals.
    """

    async def balance_of(self, identity: int) -> int:
        ...

    async def transfer(
        self,
        id_from: int,
        id_to: int,
        a: list[str],
        b: list[list[str]],
        c: list[str],
        inputs: list[str],
    ) -> Any:
        ...


@dataclass
class TransferReceipt:
    """acknowledgement returned by InMemoryLedger.transfer()."""
    sequence: int
    id_from: int
    id_to: int
    sender_balance: int
    receiver_balance: int


@dataclass
class _Account:
    public_key: paillier.PaillierPublicKey
    balance: int


@dataclass
class InMemoryLedger:
    """
    local stand-in for the ledger contract.

    holds one encrypted balance per identity and, on transfer, checks the
    proof, checks it was built against the current sender balance, then
    folds signal 1 into the sender and signal 2 into the receiver. transfers
    are applied one at a time, so two proofs against the same balance
    cannot both land. useful for demos and end-to-end tests; it is not the
    on-chain contract.
    """
    verifier: Any  # ProofEngine
    verification_key: Any = None
    _accounts: dict[int, _Account] = field(default_factory=dict)
    _sequence: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def register(self, identity: int, public_key: paillier.PaillierPublicKey, balance: int) -> None:
        """open an account with an initial encrypted balance."""
        if identity in self._accounts:
            raise ValueError(f"identity {identity} already registered")
        self._accounts[identity] = _Account(public_key=public_key, balance=int(balance))
        logger.debug(f"registered identity {identity}")

    def _account(self, identity: int) -> _Account:
        if identity not in self._accounts:
            raise ContractCallError(f"unknown identity {identity}")
        return self._accounts[identity]

    async def balance_of(self, identity: int) -> int:
        return self._account(identity).balance

    async def transfer(
        self,
        id_from: int,
        id_to: int,
        a: list[str],
        b: list[list[str]],
        c: list[str],
        inputs: list[str],
    ) -> TransferReceipt:
        async with self._lock:
            sender = self._account(id_from)
            receiver = self._account(id_to)

            if len(inputs) != 4:
                raise ContractCallError(f"expected 4 public inputs, got {len(inputs)}")
            if int(inputs[0]) != sender.balance:
                raise ContractCallError("proof was built against a stale sender balance")

            # undo the solidity coordinate order before handing back to snarkjs
            proof = {
                "pi_a": [a[0], a[1], "1"],
                "pi_b": [[b[0][1], b[0][0]], [b[1][1], b[1][0]], ["1", "0"]],
                "pi_c": [c[0], c[1], "1"],
                "protocol": "groth16",
                "curve": "bn128",
            }
            if not await self.verifier.verify(proof, inputs, self.verification_key):
                raise ContractCallError("invalid transfer proof")

            sender.balance = add_ciphertexts(sender.public_key, sender.balance, int(inputs[1]))
            receiver.balance = add_ciphertexts(receiver.public_key, receiver.balance, int(inputs[2]))
            self._sequence += 1
            receipt = TransferReceipt(
                sequence=self._sequence,
                id_from=id_from,
                id_to=id_to,
                sender_balance=sender.balance,
                receiver_balance=receiver.balance,
            )

        logger.info(f"ledger applied transfer {receipt.sequence}: {id_from} -> {id_to}")
        return receipt
