# Author: Bradley R. Kinnard
# transfer orchestrator - direct (on-ledger) and aggregated (offline) transfer flows

from pathlib import Path
from typing import Any

from crypto.commitments import CommitmentHasher
from crypto.homomorphic import KeyPair
from interfaces.ledger import ContractCallError, LedgerContract
from transfer.artifacts import ProofArtifactStore
from transfer.proof_engine import (
    ENCRYPTED_SENDER_VALUE_INDEX,
    CircuitArtifacts,
    Groth16Proof,
    ProofEngine,
    ProofResult,
    to_contract_call,
)
from transfer.witness import build_witness
from utils.helpers import get_logger

logger = get_logger(__name__)


class TransferOrchestrator:
    """
    runs one transfer end to end.

    direct:     commit auth -> read balance -> witness -> prove -> submit
    aggregated: commit auth -> witness -> prove -> persist -> fold

    no retries; every failure surfaces to the caller. witnesses and proofs
    are frozen values, so cancelling mid-flow leaves nothing half-built.
    """

    def __init__(
        self,
        hasher: CommitmentHasher,
        engine: ProofEngine,
        ledger: LedgerContract | None = None,
        store: ProofArtifactStore | None = None,
    ):
        self._hasher = hasher
        self._engine = engine
        self._ledger = ledger
        self._store = store

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        ledger: LedgerContract | None = None,
    ) -> "TransferOrchestrator":
        """wire hasher, snarkjs engine and artifact store from a validated config."""
        from interfaces.snarkjs_backend import SnarkjsBackend, SnarkjsConfig

        hasher_cfg = config.get("hasher", {})
        hasher = CommitmentHasher(
            seed=hasher_cfg.get("seed", "mimcsponge"),
            rounds=hasher_cfg.get("rounds", 220),
            key=hasher_cfg.get("key", 0),
        )
        engine = ProofEngine(
            SnarkjsBackend(SnarkjsConfig.from_config(config)),
            CircuitArtifacts.from_config(config),
        )
        store = ProofArtifactStore(Path(config["aggregation"]["artifact_dir"]))
        return cls(hasher, engine, ledger=ledger, store=store)

    @property
    def engine(self) -> ProofEngine:
        return self._engine

    @property
    def store(self) -> ProofArtifactStore | None:
        return self._store

    async def commit_auth(self, auth_secret: int | str) -> str:
        """auth commitment = MiMC(secret), the value published earlier."""
        await self._hasher.init()
        return self._hasher.simple_hash(auth_secret)

    async def transfer_proof(
        self,
        sender_keys: KeyPair,
        receiver_keys: KeyPair,
        value: int,
        encrypted_sender_balance: int,
        auth_commitment: int | str,
        auth_secret: int | str,
    ) -> ProofResult:
        """build a fresh witness and prove it."""
        witness = build_witness(
            sender_keys,
            receiver_keys,
            value,
            encrypted_sender_balance,
            auth_commitment,
            auth_secret,
        )
        return await self._engine.prove(witness)

    async def transfer(
        self,
        sender_keys: KeyPair,
        receiver_keys: KeyPair,
        value: int,
        auth_secret: int | str,
        id_from: int,
        id_to: int,
    ) -> Any:
        """prove a transfer against the live ledger balance and submit it."""
        if self._ledger is None:
            raise ContractCallError("no ledger configured for direct transfers")

        auth_commitment = await self.commit_auth(auth_secret)

        try:
            balance = await self._ledger.balance_of(id_from)
        except ContractCallError:
            raise
        except Exception as e:
            raise ContractCallError(f"balance query for {id_from} failed: {e}") from e

        result = await self.transfer_proof(
            sender_keys,
            receiver_keys,
            value,
            int(balance),
            auth_commitment,
            auth_secret,
        )

        call = to_contract_call(result.proof, result.public_signals)
        try:
            receipt = await self._ledger.transfer(id_from, id_to, *call.as_args())
        except ContractCallError:
            raise
        except Exception as e:
            raise ContractCallError(f"transfer {id_from} -> {id_to} rejected: {e}") from e

        logger.info(f"submitted transfer {id_from} -> {id_to}")
        return receipt

    async def transfer_aggregation(
        self,
        sender_keys: KeyPair,
        receiver_keys: KeyPair,
        value: int,
        auth_secret: int | str,
        index: int,
        balance: int,
    ) -> int:
        """
        prove a transfer offline, persist it under index, and return the
        sender's new encrypted balance for chaining into the next call.

        the fold multiplies in public signal 1, Enc(n - value), so the
        result decrypts to balance - value mod n.
        """
        if self._store is None:
            raise ValueError("aggregated transfers need an artifact store")

        auth_commitment = await self.commit_auth(auth_secret)

        result = await self.transfer_proof(
            sender_keys,
            receiver_keys,
            value,
            balance,
            auth_commitment,
            auth_secret,
        )

        await self._store.save(index, result.proof, result.public_signals)

        folded = sender_keys.addition(
            balance, int(result.public_signals[ENCRYPTED_SENDER_VALUE_INDEX])
        )
        logger.debug(f"folded aggregated transfer {index} into sender balance")
        return folded

    async def verify_transfer_proof(
        self,
        proof: Groth16Proof | dict[str, Any],
        public_signals,
    ) -> bool:
        """verify against the configured verification key."""
        return await self._engine.verify(proof, public_signals)
