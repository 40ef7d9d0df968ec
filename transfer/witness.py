# Author: Bradley R. Kinnard
# transfer witness - private and public inputs for the transfer circuit

from dataclasses import dataclass
from typing import Any, Callable

from crypto.homomorphic import KeyPair
from crypto.mimc import FIELD_MODULUS
from crypto.randomness import random_blinding
from utils.helpers import get_logger

logger = get_logger(__name__)


class InvalidWitnessError(ValueError):
    """raised when a value, balance or commitment is outside its valid range."""
    pass


@dataclass(frozen=True)
class TransferWitness:
    """
    full input record for one transfer proof.

    public-key triples are (g, r, n) where r is the blinding used for that
    party's ciphertext, so the circuit can re-encrypt and compare. the
    private key triple (lambda, mu, n) lets the circuit check the sender
    can open their own balance.

    built fresh per transfer; never reuse one, the randomness inside it
    must not encrypt a second value.
    """
    encrypted_sender_balance: int
    encrypted_sender_value: int
    encrypted_receiver_value: int
    value: int
    auth_commitment: int
    auth_secret: int
    sender_pub_key: tuple[int, int, int]
    receiver_pub_key: tuple[int, int, int]
    sender_priv_key: tuple[int, int, int]

    @property
    def sender_randomness(self) -> int:
        return self.sender_pub_key[1]

    @property
    def receiver_randomness(self) -> int:
        return self.receiver_pub_key[1]

    def to_circuit_input(self) -> dict[str, Any]:
        """circuit input JSON: camelCase signal names, integers as decimal strings."""
        return {
            "encryptedSenderBalance": str(self.encrypted_sender_balance),
            "encryptedSenderValue": str(self.encrypted_sender_value),
            "encryptedReceiverValue": str(self.encrypted_receiver_value),
            "value": str(self.value),
            "authCommitment": str(self.auth_commitment),
            "authSecret": str(self.auth_secret),
            "senderPubKey": [str(x) for x in self.sender_pub_key],
            "receiverPubKey": [str(x) for x in self.receiver_pub_key],
            "senderPrivKey": [str(x) for x in self.sender_priv_key],
        }


def _as_int(name: str, raw: int | str) -> int:
    if isinstance(raw, bool):
        raise InvalidWitnessError(f"{name} must be an integer, got bool")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise InvalidWitnessError(f"{name} is empty")
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError as e:
            raise InvalidWitnessError(f"{name} is not numeric: {e}") from e
    raise InvalidWitnessError(f"{name} must be int or str, got {type(raw).__name__}")


def build_witness(
    sender_keys: KeyPair,
    receiver_keys: KeyPair,
    value: int,
    encrypted_sender_balance: int,
    auth_commitment: int | str,
    auth_secret: int | str,
    *,
    rng: Callable[[int], int] = random_blinding,
) -> TransferWitness:
    """
    assemble the transfer witness.

    the sender side encrypts n - value, the additive inverse of value mod n,
    so that multiplying it into the balance ciphertext subtracts value.
    the receiver side encrypts value under the receiver's own key.
    """
    value = _as_int("value", value)
    encrypted_sender_balance = _as_int("encrypted_sender_balance", encrypted_sender_balance)
    commitment = _as_int("auth_commitment", auth_commitment)
    secret = _as_int("auth_secret", auth_secret)

    n_s = sender_keys.n
    n_r = receiver_keys.n

    if not 0 <= value < n_s:
        raise InvalidWitnessError("value out of range for sender modulus")
    if not 0 <= value < n_r:
        raise InvalidWitnessError("value out of range for receiver modulus")
    if not 0 <= encrypted_sender_balance < sender_keys.nsquare:
        raise InvalidWitnessError("encrypted sender balance outside Z_{n^2}")
    if not 0 <= commitment < FIELD_MODULUS:
        raise InvalidWitnessError("auth commitment is not a field element")

    sender_r = rng(n_s)
    receiver_r = rng(n_r)

    encrypted_sender_value = sender_keys.encrypt(n_s - value, sender_r)
    encrypted_receiver_value = receiver_keys.encrypt(value, receiver_r)

    witness = TransferWitness(
        encrypted_sender_balance=encrypted_sender_balance,
        encrypted_sender_value=encrypted_sender_value,
        encrypted_receiver_value=encrypted_receiver_value,
        value=value,
        auth_commitment=commitment,
        auth_secret=secret,
        sender_pub_key=sender_keys.public_triple(sender_r),
        receiver_pub_key=receiver_keys.public_triple(receiver_r),
        sender_priv_key=sender_keys.private_triple(),
    )

    logger.debug("built transfer witness")
    return witness
