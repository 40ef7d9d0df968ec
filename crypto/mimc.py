# Author: Bradley R. Kinnard
# MiMC sponge over the BN254 scalar field, circomlib-compatible
# Feistel construction with x^5 rounds, keccak256-derived round constants

from dataclasses import dataclass
from typing import Iterable

from Cryptodome.Hash import keccak

from utils.helpers import get_logger

logger = get_logger(__name__)


# BN254 (alt_bn128) scalar field, the native field of circom circuits
FIELD_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

DEFAULT_SEED = "mimcsponge"
DEFAULT_ROUNDS = 220


def _keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def to_field(value: int | str) -> int:
    """
    coerce an input to a field element.

    accepts ints, decimal strings and 0x-prefixed hex strings. values are
    reduced mod the field, negatives wrap around.
    """
    if isinstance(value, bool):
        raise TypeError("booleans are not field elements")

    if isinstance(value, int):
        return value % FIELD_MODULUS

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty string is not a field element")
        if text.lower().startswith("0x"):
            return int(text, 16) % FIELD_MODULUS
        return int(text, 10) % FIELD_MODULUS

    raise TypeError(f"cannot convert {type(value).__name__} to a field element")


def round_constants(seed: str = DEFAULT_SEED, rounds: int = DEFAULT_ROUNDS) -> tuple[int, ...]:
    """
    derive the round constants.

    c[0] and c[rounds-1] are zero. every constant in between is the next
    link of a keccak256 chain over the seed, reduced mod the field. the
    chain hashes the unreduced 32-byte digest.
    """
    if rounds < 2:
        raise ValueError("mimc needs at least 2 rounds")

    constants = [0] * rounds
    digest = _keccak256(seed.encode("utf-8"))
    for i in range(1, rounds):
        digest = _keccak256(digest)
        constants[i] = int.from_bytes(digest, "big") % FIELD_MODULUS

    constants[0] = 0
    constants[-1] = 0
    return tuple(constants)


@dataclass(frozen=True)
class MiMCSponge:
    """
    MiMC-Feistel permutation wrapped as a sponge.

    build with from_seed(); the constants are the only state and never
    change after construction.
    """
    constants: tuple[int, ...]

    @classmethod
    def from_seed(cls, seed: str = DEFAULT_SEED, rounds: int = DEFAULT_ROUNDS) -> "MiMCSponge":
        sponge = cls(constants=round_constants(seed, rounds))
        logger.debug(f"derived {rounds} mimc round constants")
        return sponge

    @property
    def rounds(self) -> int:
        return len(self.constants)

    def hash(self, x_left: int | str, x_right: int | str, key: int | str = 0) -> tuple[int, int]:
        """one keyed MiMC-Feistel permutation of (xL, xR)."""
        p = FIELD_MODULUS
        xl = to_field(x_left)
        xr = to_field(x_right)
        k = to_field(key)
        last = self.rounds - 1

        for i, c in enumerate(self.constants):
            t = (xl + k + c) % p
            t5 = pow(t, 5, p)
            if i < last:
                xl, xr = (xr + t5) % p, xl
            else:
                xr = (xr + t5) % p

        return xl, xr

    def multi_hash(
        self,
        inputs: Iterable[int | str],
        key: int | str = 0,
        num_outputs: int = 1,
    ) -> int | list[int]:
        """
        absorb inputs one at a time into the rate lane, then squeeze.

        returns a single element when num_outputs is 1, otherwise a list.
        """
        if num_outputs < 1:
            raise ValueError("num_outputs must be at least 1")

        r = 0
        c = 0
        for item in inputs:
            r = (r + to_field(item)) % FIELD_MODULUS
            r, c = self.hash(r, c, key)

        outputs = [r]
        for _ in range(1, num_outputs):
            r, c = self.hash(r, c, key)
            outputs.append(r)

        if num_outputs == 1:
            return outputs[0]
        return outputs
