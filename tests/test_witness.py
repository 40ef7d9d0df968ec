# Author: Bradley R. Kinnard
# tests for the transfer witness builder

import dataclasses

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from crypto.mimc import FIELD_MODULUS
from transfer.witness import InvalidWitnessError, TransferWitness, build_witness


AUTH_SECRET = "918273645"


@pytest.fixture
def commitment(hasher):
    return hasher.simple_hash(AUTH_SECRET)


@pytest.fixture
def balance(sender_keys):
    return sender_keys.encrypt(500)


class TestHomomorphicCorrectness:
    """ciphertexts inside the witness."""

    def test_sender_value_decrypts_to_inverse(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        assert sender_keys.decrypt(w.encrypted_sender_value) == sender_keys.n - 100

    def test_receiver_value_decrypts_to_value(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        assert receiver_keys.decrypt(w.encrypted_receiver_value) == 100

    def test_balance_minus_value_via_addition(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        folded = sender_keys.addition(balance, w.encrypted_sender_value)
        assert sender_keys.decrypt(folded) == 400

    def test_ciphertexts_match_recorded_randomness(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        assert sender_keys.encrypt(sender_keys.n - 100, w.sender_randomness) == w.encrypted_sender_value
        assert receiver_keys.encrypt(100, w.receiver_randomness) == w.encrypted_receiver_value

    def test_zero_value(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 0, balance, commitment, AUTH_SECRET)
        assert sender_keys.decrypt(w.encrypted_sender_value) == 0
        assert receiver_keys.decrypt(w.encrypted_receiver_value) == 0

    @settings(max_examples=10)
    @given(st.integers(min_value=0, max_value=2**64))
    def test_any_value_in_range(self, sender_keys, receiver_keys, hasher, value):
        w = build_witness(
            sender_keys, receiver_keys, value,
            sender_keys.encrypt(1), hasher.simple_hash(7), 7,
        )
        assert sender_keys.decrypt(w.encrypted_sender_value) == (sender_keys.n - value) % sender_keys.n
        assert receiver_keys.decrypt(w.encrypted_receiver_value) == value


class TestStructure:
    """witness layout."""

    def test_key_triples(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        assert w.sender_pub_key[0] == sender_keys.g
        assert w.sender_pub_key[2] == sender_keys.n
        assert w.receiver_pub_key[0] == receiver_keys.g
        assert w.receiver_pub_key[2] == receiver_keys.n
        assert w.sender_priv_key == (sender_keys.lam, sender_keys.mu, sender_keys.n)

    def test_fresh_randomness_each_call(self, sender_keys, receiver_keys, balance, commitment):
        w1 = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        w2 = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        assert w1.sender_randomness != w2.sender_randomness
        assert w1.encrypted_sender_value != w2.encrypted_sender_value

    def test_injected_rng(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(
            sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET,
            rng=lambda n: 3,
        )
        assert w.sender_randomness == 3
        assert w.receiver_randomness == 3

    def test_frozen(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        with pytest.raises(dataclasses.FrozenInstanceError):
            w.value = 1

    def test_circuit_input_names_and_strings(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 100, balance, commitment, AUTH_SECRET)
        data = w.to_circuit_input()

        assert set(data) == {
            "encryptedSenderBalance", "encryptedSenderValue", "encryptedReceiverValue",
            "value", "authCommitment", "authSecret",
            "senderPubKey", "receiverPubKey", "senderPrivKey",
        }
        assert data["value"] == "100"
        assert data["authSecret"] == AUTH_SECRET
        assert data["authCommitment"] == commitment
        assert all(isinstance(x, str) for x in data["senderPubKey"])
        assert len(data["senderPrivKey"]) == 3

    def test_commitment_accepts_int(self, sender_keys, receiver_keys, balance, commitment):
        w = build_witness(sender_keys, receiver_keys, 1, balance, int(commitment), int(AUTH_SECRET))
        assert isinstance(w, TransferWitness)
        assert w.auth_commitment == int(commitment)


class TestPreconditions:
    """range checks."""

    def test_negative_value(self, sender_keys, receiver_keys, balance, commitment):
        with pytest.raises(InvalidWitnessError):
            build_witness(sender_keys, receiver_keys, -1, balance, commitment, AUTH_SECRET)

    def test_value_equal_sender_modulus(self, sender_keys, receiver_keys, balance, commitment):
        with pytest.raises(InvalidWitnessError, match="sender"):
            build_witness(sender_keys, receiver_keys, sender_keys.n, balance, commitment, AUTH_SECRET)

    def test_value_above_receiver_modulus(self, sender_keys, receiver_keys, balance, commitment):
        value = receiver_keys.n
        if value < sender_keys.n:
            with pytest.raises(InvalidWitnessError, match="receiver"):
                build_witness(sender_keys, receiver_keys, value, balance, commitment, AUTH_SECRET)
        else:
            with pytest.raises(InvalidWitnessError):
                build_witness(sender_keys, receiver_keys, value, balance, commitment, AUTH_SECRET)

    def test_balance_outside_ciphertext_space(self, sender_keys, receiver_keys, commitment):
        with pytest.raises(InvalidWitnessError, match="balance"):
            build_witness(sender_keys, receiver_keys, 1, sender_keys.nsquare, commitment, AUTH_SECRET)

    def test_empty_commitment(self, sender_keys, receiver_keys, balance):
        with pytest.raises(InvalidWitnessError, match="empty"):
            build_witness(sender_keys, receiver_keys, 1, balance, "", AUTH_SECRET)

    def test_commitment_outside_field(self, sender_keys, receiver_keys, balance):
        with pytest.raises(InvalidWitnessError):
            build_witness(sender_keys, receiver_keys, 1, balance, FIELD_MODULUS, AUTH_SECRET)

    def test_non_numeric_secret(self, sender_keys, receiver_keys, balance, commitment):
        with pytest.raises(InvalidWitnessError, match="numeric"):
            build_witness(sender_keys, receiver_keys, 1, balance, commitment, "hunter2")

    def test_bool_value_rejected(self, sender_keys, receiver_keys, balance, commitment):
        with pytest.raises(InvalidWitnessError):
            build_witness(sender_keys, receiver_keys, True, balance, commitment, AUTH_SECRET)
