# Author: Bradley R. Kinnard
# paillier key pairs and additively homomorphic operations on raw ciphertexts
# primitives come from python-paillier (phe); this module only adapts them

import math
from dataclasses import dataclass
from typing import Any

from phe import paillier

from crypto.randomness import random_blinding
from utils.helpers import get_logger

logger = get_logger(__name__)


DEFAULT_KEY_LENGTH = 2048


def _l_function(x: int, n: int) -> int:
    """paillier L(x) = (x - 1) / n."""
    return (x - 1) // n


@dataclass(frozen=True)
class KeyPair:
    """
    paillier key pair for one identity.

    ciphertexts are plain ints in [0, n^2). the circuit consumes the
    private key as (lambda, mu, n), so those are derived from p and q
    here rather than read from phe, which keeps its own CRT form.
    """
    public_key: paillier.PaillierPublicKey
    private_key: paillier.PaillierPrivateKey

    @property
    def n(self) -> int:
        return self.public_key.n

    @property
    def g(self) -> int:
        return self.public_key.g

    @property
    def nsquare(self) -> int:
        return self.public_key.nsquare

    @property
    def lam(self) -> int:
        """carmichael lambda(n) = lcm(p - 1, q - 1)."""
        p = self.private_key.p
        q = self.private_key.q
        return (p - 1) * (q - 1) // math.gcd(p - 1, q - 1)

    @property
    def mu(self) -> int:
        """mu = L(g^lambda mod n^2)^-1 mod n."""
        u = pow(self.g, self.lam, self.nsquare)
        return pow(_l_function(u, self.n), -1, self.n)

    def encrypt(self, plaintext: int, r: int | None = None) -> int:
        """raw encryption with explicit blinding r (fresh one if omitted)."""
        if r is None:
            r = random_blinding(self.n)
        return self.public_key.raw_encrypt(plaintext, r_value=r)

    def addition(self, *ciphertexts: int) -> int:
        """homomorphic sum under this key, see add_ciphertexts()."""
        return add_ciphertexts(self.public_key, *ciphertexts)

    def decrypt(self, ciphertext: int) -> int:
        """raw decryption to [0, n). used by key holders and test oracles."""
        return self.private_key.raw_decrypt(int(ciphertext))

    def public_triple(self, r: int) -> tuple[int, int, int]:
        """(g, r, n): public key bound to the blinding used for one ciphertext."""
        return (self.g, r, self.n)

    def private_triple(self) -> tuple[int, int, int]:
        """(lambda, mu, n) as the circuit expects it."""
        return (self.lam, self.mu, self.n)

    def to_dict(self, include_private: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {"n": str(self.n), "g": str(self.g)}
        if include_private:
            d["p"] = str(self.private_key.p)
            d["q"] = str(self.private_key.q)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "KeyPair":
        public_key = paillier.PaillierPublicKey(int(d["n"]))
        private_key = paillier.PaillierPrivateKey(public_key, int(d["p"]), int(d["q"]))
        return cls(public_key=public_key, private_key=private_key)


def add_ciphertexts(public_key: paillier.PaillierPublicKey, *ciphertexts: int) -> int:
    """
    homomorphic sum of raw ciphertexts: Enc(a) (+) Enc(b) = Enc(a + b mod n).

    only needs the public key, so ledgers can fold balances they can't read.
    """
    if not ciphertexts:
        raise ValueError("addition needs at least one ciphertext")

    total = paillier.EncryptedNumber(public_key, int(ciphertexts[0]))
    for c in ciphertexts[1:]:
        total = total + paillier.EncryptedNumber(public_key, int(c))
    return total.ciphertext(be_secure=False)


def generate_keypair(n_length: int = DEFAULT_KEY_LENGTH) -> KeyPair:
    """generate a fresh paillier key pair with an n_length-bit modulus."""
    public_key, private_key = paillier.generate_paillier_keypair(n_length=n_length)
    logger.info(f"generated paillier keypair ({n_length}-bit modulus)")
    return KeyPair(public_key=public_key, private_key=private_key)
