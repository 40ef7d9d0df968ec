# Author: Bradley R. Kinnard
# proof engine - groth16 proving and verification through an external backend
# plus the reshaping of proofs into the ledger contract's calling convention

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import aiofiles
import jsonschema

from config.schemas import (
    groth16_proof_schema,
    public_signals_schema,
    verification_key_schema,
)
from transfer.witness import TransferWitness
from utils.helpers import get_logger

logger = get_logger(__name__)


# public signals of the transfer circuit, in its declared order
TRANSFER_PUBLIC_SIGNALS = (
    "encryptedSenderBalance",
    "encryptedSenderValue",
    "encryptedReceiverValue",
    "authCommitment",
)
CONTRACT_SIGNAL_COUNT = 4
ENCRYPTED_SENDER_VALUE_INDEX = TRANSFER_PUBLIC_SIGNALS.index("encryptedSenderValue")


class ProvingError(RuntimeError):
    """witness rejected by the circuit, or proving artifacts unusable."""
    pass


class VerificationKeyError(OSError):
    """verification key missing, unreadable or malformed."""
    pass


class BackendError(RuntimeError):
    """the proving/verifying backend itself failed (crash, timeout, bad exit)."""
    pass


class ProvingBackend(Protocol):
    """external groth16 backend, e.g. snarkjs."""

    async def full_prove(
        self,
        circuit_input: dict[str, Any],
        wasm_path: Path,
        zkey_path: Path,
    ) -> tuple[dict[str, Any], list[str]]:
        ...

    async def verify(
        self,
        verification_key: dict[str, Any],
        public_signals: list[str],
        proof: dict[str, Any],
    ) -> bool:
        ...


@dataclass(frozen=True)
class CircuitArtifacts:
    """compiled circuit files: witness calculator, proving key, verification key."""
    wasm: Path
    zkey: Path
    verification_key: Path

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CircuitArtifacts":
        circuit = config["circuit"]
        return cls(
            wasm=Path(circuit["wasm"]),
            zkey=Path(circuit["zkey"]),
            verification_key=Path(circuit["verification_key"]),
        )


@dataclass(frozen=True)
class Groth16Proof:
    """
    groth16 proof as snarkjs emits it.

    coordinates stay decimal strings; points keep their projective
    third coordinate so to_dict() reproduces the backend's JSON exactly.
    """
    pi_a: tuple[str, ...]
    pi_b: tuple[tuple[str, ...], ...]
    pi_c: tuple[str, ...]
    protocol: str = "groth16"
    curve: str = "bn128"

    def to_dict(self) -> dict[str, Any]:
        return {
            "pi_a": list(self.pi_a),
            "pi_b": [list(row) for row in self.pi_b],
            "pi_c": list(self.pi_c),
            "protocol": self.protocol,
            "curve": self.curve,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Groth16Proof":
        jsonschema.validate(instance=d, schema=groth16_proof_schema)
        return cls(
            pi_a=tuple(d["pi_a"]),
            pi_b=tuple(tuple(row) for row in d["pi_b"]),
            pi_c=tuple(d["pi_c"]),
            protocol=d.get("protocol", "groth16"),
            curve=d.get("curve", "bn128"),
        )


@dataclass(frozen=True)
class ProofResult:
    """proof plus its public signals, in circuit order."""
    proof: Groth16Proof
    public_signals: tuple[str, ...]

    def signal(self, name: str) -> int:
        """read a public signal by its circuit name."""
        return int(self.public_signals[TRANSFER_PUBLIC_SIGNALS.index(name)])


@dataclass(frozen=True)
class ContractCall:
    """arguments for transfer(idFrom, idTo, a, b, c, inputs)."""
    a: tuple[str, str]
    b: tuple[tuple[str, str], tuple[str, str]]
    c: tuple[str, str]
    inputs: tuple[str, ...]

    def as_args(self) -> tuple[list[str], list[list[str]], list[str], list[str]]:
        return (
            list(self.a),
            [list(row) for row in self.b],
            list(self.c),
            list(self.inputs),
        )


def swap_g2_coordinates(pi_b) -> tuple[tuple[str, str], tuple[str, str]]:
    """
    reorder pi_b for the solidity pairing precompile.

    snarkjs writes each Fp2 coordinate as [c0, c1]; the EVM verifier reads
    [c1, c0]. the projective third row is dropped.
    """
    if len(pi_b) < 2 or any(len(row) < 2 for row in pi_b[:2]):
        raise ProvingError("pi_b must hold two Fp2 coordinates")
    return (
        (pi_b[0][1], pi_b[0][0]),
        (pi_b[1][1], pi_b[1][0]),
    )


def to_contract_call(proof: Groth16Proof, public_signals) -> ContractCall:
    """reshape a proof and its signals for the ledger's transfer entry point."""
    if len(public_signals) < CONTRACT_SIGNAL_COUNT:
        raise ProvingError(
            f"expected at least {CONTRACT_SIGNAL_COUNT} public signals, got {len(public_signals)}"
        )
    return ContractCall(
        a=(proof.pi_a[0], proof.pi_a[1]),
        b=swap_g2_coordinates(proof.pi_b),
        c=(proof.pi_c[0], proof.pi_c[1]),
        inputs=tuple(str(s) for s in public_signals[:CONTRACT_SIGNAL_COUNT]),
    )


async def load_verification_key(source: Path | str | dict[str, Any]) -> dict[str, Any]:
    """read and validate a verification key from disk (or validate a parsed one)."""
    if isinstance(source, dict):
        vkey = source
    else:
        path = Path(source)
        try:
            async with aiofiles.open(path, "r") as f:
                vkey = json.loads(await f.read())
        except json.JSONDecodeError as e:
            raise VerificationKeyError(f"verification key is not valid JSON: {path}: {e}") from e
        except OSError as e:
            raise VerificationKeyError(f"cannot read verification key {path}: {e}") from e

    try:
        jsonschema.validate(instance=vkey, schema=verification_key_schema)
    except jsonschema.ValidationError as e:
        raise VerificationKeyError(f"malformed verification key: {e.message}") from e

    return vkey


class ProofEngine:
    """
    proves transfer witnesses and verifies proofs.

    holds only immutable configuration, so one engine can serve any
    number of concurrent transfer flows.
    """

    def __init__(self, backend: ProvingBackend, artifacts: CircuitArtifacts):
        self._backend = backend
        self._artifacts = artifacts

    @property
    def artifacts(self) -> CircuitArtifacts:
        return self._artifacts

    async def prove(self, witness: TransferWitness) -> ProofResult:
        """generate a groth16 proof for the witness."""
        for label, path in (("wasm", self._artifacts.wasm), ("zkey", self._artifacts.zkey)):
            if not Path(path).is_file():
                raise ProvingError(f"missing circuit {label}: {path}")

        start = time.perf_counter()
        try:
            raw_proof, raw_signals = await self._backend.full_prove(
                witness.to_circuit_input(),
                self._artifacts.wasm,
                self._artifacts.zkey,
            )
        except BackendError as e:
            logger.error(f"proof generation failed: {e}")
            raise ProvingError(f"proof generation failed: {e}") from e

        try:
            proof = Groth16Proof.from_dict(raw_proof)
            jsonschema.validate(instance=raw_signals, schema=public_signals_schema)
        except jsonschema.ValidationError as e:
            raise ProvingError(f"backend returned malformed output: {e.message}") from e

        if len(raw_signals) < len(TRANSFER_PUBLIC_SIGNALS):
            raise ProvingError(
                f"backend returned {len(raw_signals)} public signals, "
                f"circuit declares {len(TRANSFER_PUBLIC_SIGNALS)}"
            )

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"generated transfer proof in {elapsed_ms:.1f}ms")

        return ProofResult(proof=proof, public_signals=tuple(raw_signals))

    async def verify(
        self,
        proof: Groth16Proof | dict[str, Any],
        public_signals,
        verification_key: Path | str | dict[str, Any] | None = None,
    ) -> bool:
        """
        check a proof against its public signals.

        returns False for proofs that don't verify (including malformed
        proof documents). raises VerificationKeyError if the key can't be
        loaded; backend crashes propagate as BackendError.
        """
        vkey = await load_verification_key(
            verification_key if verification_key is not None else self._artifacts.verification_key
        )

        proof_dict = proof.to_dict() if isinstance(proof, Groth16Proof) else proof
        signals = [str(s) for s in public_signals]

        try:
            jsonschema.validate(instance=proof_dict, schema=groth16_proof_schema)
            jsonschema.validate(instance=signals, schema=public_signals_schema)
        except jsonschema.ValidationError as e:
            logger.warning(f"rejecting malformed proof document: {e.message}")
            return False

        valid = await self._backend.verify(vkey, signals, proof_dict)
        if not valid:
            logger.warning("transfer proof failed verification")
        else:
            logger.debug("transfer proof verified")
        return bool(valid)
