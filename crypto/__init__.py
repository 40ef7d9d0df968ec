# Author: Bradley R. Kinnard
# crypto module - MiMC commitments and hasher contract, paillier keys, randomness, merkle tree

from crypto.mimc import (
    FIELD_MODULUS,
    MiMCSponge,
    round_constants,
    to_field,
)
from crypto.mimc_contract import (
    MIMC_SPONGE_ABI,
    create_code,
)
from crypto.commitments import (
    CommitmentHasher,
    UninitializedHasherError,
)
from crypto.randomness import (
    random_below,
    random_blinding,
)
from crypto.homomorphic import (
    KeyPair,
    add_ciphertexts,
    generate_keypair,
)
from crypto.merkle import (
    CommitmentMerkleTree,
    MerkleProof,
)

__all__ = [
    # mimc
    "FIELD_MODULUS",
    "MiMCSponge",
    "round_constants",
    "to_field",
    # hasher contract
    "MIMC_SPONGE_ABI",
    "create_code",
    # commitments
    "CommitmentHasher",
    "UninitializedHasherError",
    # randomness
    "random_below",
    "random_blinding",
    # paillier
    "KeyPair",
    "add_ciphertexts",
    "generate_keypair",
    # merkle
    "CommitmentMerkleTree",
    "MerkleProof",
]
