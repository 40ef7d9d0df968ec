# Author: Bradley R. Kinnard
# pytest configuration and fixtures

"""
Test Configuration

Hypothesis Settings:
- Default seed: controlled via pytest-randomly or explicit seed
- Reproducibility: run with --hypothesis-seed=<seed> to reproduce
- Database: .hypothesis/ stores examples for shrinking

To reproduce a failing test:
  pytest tests/test_commitments.py --hypothesis-seed=12345

Proving is faked in-process (FakeGroth16Backend): it checks the same
relations the transfer circuit constrains and emits public signals in the
circuit's declared order, so the flows run without node or snarkjs.
"""

import asyncio
import hashlib
import json
import os
from typing import Any

import pytest
from hypothesis import settings, Phase

from crypto.commitments import CommitmentHasher
from crypto.homomorphic import KeyPair, generate_keypair
from crypto.mimc import FIELD_MODULUS
from transfer.artifacts import ProofArtifactStore
from transfer.orchestrator import TransferOrchestrator
from transfer.proof_engine import (
    TRANSFER_PUBLIC_SIGNALS,
    BackendError,
    CircuitArtifacts,
    ProofEngine,
)

# configure hypothesis defaults
settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,  # disable deadline in CI (slower machines)
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    print_blob=True,  # print blob for reproduction
)

settings.register_profile(
    "dev",
    max_examples=20,
    deadline=None,  # mimc is pure python, keep it off the clock
)

settings.register_profile(
    "extensive",
    max_examples=500,
    deadline=None,
)

# load profile from environment or default to dev
profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(profile)

TEST_KEY_BITS = 512
CIRCUIT_KEY = "transfer-test-circuit"


def _digest_field(*parts: str) -> str:
    """hash strings to a decimal field element."""
    h = hashlib.sha256("|".join(parts).encode()).digest()
    return str(int.from_bytes(h, "big") % FIELD_MODULUS)


def paillier_encrypt(g: int, r: int, n: int, m: int) -> int:
    """textbook c = g^m * r^n mod n^2, the relation the circuit re-checks."""
    n2 = n * n
    return (pow(g, m, n2) * pow(r, n, n2)) % n2


class FakeGroth16Backend:
    """
    deterministic stand-in for snarkjs.

    full_prove enforces the transfer circuit's relations and raises
    BackendError when they fail. proofs are hashes of (circuit key,
    public signals); verify recomputes them, keyed by vk_alpha_1[0].
    """

    def __init__(self, hasher: CommitmentHasher, circuit_key: str = CIRCUIT_KEY):
        self._hasher = hasher
        self._key = circuit_key
        self.prove_calls = 0
        self.verify_calls = 0

    def _proof_for(self, key: str, signals: list[str]) -> dict[str, Any]:
        f = [_digest_field(key, str(i), *signals) for i in range(8)]
        return {
            "pi_a": [f[0], f[1], "1"],
            "pi_b": [[f[2], f[3]], [f[4], f[5]], ["1", "0"]],
            "pi_c": [f[6], f[7], "1"],
            "protocol": "groth16",
            "curve": "bn128",
        }

    async def full_prove(self, circuit_input, wasm_path, zkey_path):
        self.prove_calls += 1
        await asyncio.sleep(0)

        g_s, r_s, n_s = (int(x) for x in circuit_input["senderPubKey"])
        g_r, r_r, n_r = (int(x) for x in circuit_input["receiverPubKey"])
        lam, mu, n_priv = (int(x) for x in circuit_input["senderPrivKey"])
        value = int(circuit_input["value"])

        if paillier_encrypt(g_s, r_s, n_s, n_s - value) != int(circuit_input["encryptedSenderValue"]):
            raise BackendError("Assert Failed: sender value ciphertext")
        if paillier_encrypt(g_r, r_r, n_r, value) != int(circuit_input["encryptedReceiverValue"]):
            raise BackendError("Assert Failed: receiver value ciphertext")
        if n_priv != n_s or ((pow(g_s, lam, n_s * n_s) - 1) // n_s) * mu % n_s != 1:
            raise BackendError("Assert Failed: sender private key")
        if self._hasher.simple_hash(circuit_input["authSecret"]) != circuit_input["authCommitment"]:
            raise BackendError("Assert Failed: auth commitment")

        signals = [circuit_input[name] for name in TRANSFER_PUBLIC_SIGNALS]
        return self._proof_for(self._key, signals), signals

    async def verify(self, verification_key, public_signals, proof):
        self.verify_calls += 1
        await asyncio.sleep(0)
        key = verification_key["vk_alpha_1"][0]
        return proof == self._proof_for(key, list(public_signals))


def fake_verification_key(circuit_key: str = CIRCUIT_KEY) -> dict[str, Any]:
    return {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": len(TRANSFER_PUBLIC_SIGNALS),
        "vk_alpha_1": [circuit_key, "0", "1"],
        "vk_beta_2": [["0", "0"], ["0", "0"], ["1", "0"]],
        "vk_gamma_2": [["0", "0"], ["0", "0"], ["1", "0"]],
        "vk_delta_2": [["0", "0"], ["0", "0"], ["1", "0"]],
        "IC": [["0", "0", "1"] for _ in range(len(TRANSFER_PUBLIC_SIGNALS) + 1)],
    }


@pytest.fixture(scope="session")
def sender_keys() -> KeyPair:
    return generate_keypair(n_length=TEST_KEY_BITS)


@pytest.fixture(scope="session")
def receiver_keys() -> KeyPair:
    return generate_keypair(n_length=TEST_KEY_BITS)


@pytest.fixture(scope="session")
def hasher() -> CommitmentHasher:
    """an initialized MiMC hasher, shared because constant derivation is slow-ish."""
    h = CommitmentHasher()
    asyncio.run(h.init())
    return h


@pytest.fixture
def circuit_artifacts(tmp_path) -> CircuitArtifacts:
    """placeholder wasm/zkey files plus a fake verification key on disk."""
    circuit_dir = tmp_path / "circuits"
    circuit_dir.mkdir()
    wasm = circuit_dir / "transfer.wasm"
    zkey = circuit_dir / "transfer.zkey"
    vkey = circuit_dir / "verification_key.json"
    wasm.write_bytes(b"\x00asm")
    zkey.write_bytes(b"zkey")
    vkey.write_text(json.dumps(fake_verification_key()))
    return CircuitArtifacts(wasm=wasm, zkey=zkey, verification_key=vkey)


@pytest.fixture
def fake_backend(hasher) -> FakeGroth16Backend:
    return FakeGroth16Backend(hasher)


@pytest.fixture
def engine(fake_backend, circuit_artifacts) -> ProofEngine:
    return ProofEngine(fake_backend, circuit_artifacts)


@pytest.fixture
def artifact_store(tmp_path) -> ProofArtifactStore:
    return ProofArtifactStore(tmp_path / "transfer_aggregation")


@pytest.fixture
def orchestrator(hasher, engine, artifact_store) -> TransferOrchestrator:
    return TransferOrchestrator(hasher, engine, store=artifact_store)

