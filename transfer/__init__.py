# Author: Bradley R. Kinnard
# transfer module - witness, proof engine, artifacts, orchestration

from transfer.witness import (
    InvalidWitnessError,
    TransferWitness,
    build_witness,
)
from transfer.proof_engine import (
    CONTRACT_SIGNAL_COUNT,
    ENCRYPTED_SENDER_VALUE_INDEX,
    TRANSFER_PUBLIC_SIGNALS,
    BackendError,
    CircuitArtifacts,
    ContractCall,
    Groth16Proof,
    ProofEngine,
    ProofResult,
    ProvingBackend,
    ProvingError,
    VerificationKeyError,
    load_verification_key,
    swap_g2_coordinates,
    to_contract_call,
)
from transfer.artifacts import (
    ArtifactStoreError,
    ProofArtifact,
    ProofArtifactStore,
)
from transfer.orchestrator import TransferOrchestrator

__all__ = [
    # witness
    "InvalidWitnessError",
    "TransferWitness",
    "build_witness",
    # proof engine
    "CONTRACT_SIGNAL_COUNT",
    "ENCRYPTED_SENDER_VALUE_INDEX",
    "TRANSFER_PUBLIC_SIGNALS",
    "BackendError",
    "CircuitArtifacts",
    "ContractCall",
    "Groth16Proof",
    "ProofEngine",
    "ProofResult",
    "ProvingBackend",
    "ProvingError",
    "VerificationKeyError",
    "load_verification_key",
    "swap_g2_coordinates",
    "to_contract_call",
    # artifacts
    "ArtifactStoreError",
    "ProofArtifact",
    "ProofArtifactStore",
    # orchestration
    "TransferOrchestrator",
]
