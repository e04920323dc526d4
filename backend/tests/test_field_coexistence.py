"""
Plaintext / ciphertext coexistence: seal (write path) and reveal (read path)
"""

import logging
from unittest.mock import patch

import pytest

from privatefolio.crypto import (
    EncryptedField,
    FieldCodec,
    FieldState,
    InvalidInput,
    PlainField,
    SessionLocked,
    classify,
    is_encrypted,
    reveal,
    seal,
)
from privatefolio.crypto.fields import LOCKED_PLACEHOLDER


@pytest.mark.parametrize("value", [0, 42, 42.0, -1.5, 1e21, 1e-7, "42.0", "12", None])
def test_plain_values_never_look_encrypted(value):
    assert not is_encrypted(value)
    assert isinstance(classify(value), PlainField)


def test_encrypted_values_classified(alice_key):
    stored = classify(FieldCodec.encrypt(1, alice_key))
    assert isinstance(stored, EncryptedField)


def test_seal_with_key_encrypts(alice_key):
    sealed = seal(12.5, alice_key)
    assert is_encrypted(sealed)
    assert FieldCodec.decrypt(sealed, alice_key) == 12.5


def test_seal_without_key_falls_back_to_plaintext(caplog):
    with caplog.at_level(logging.WARNING, logger="privatefolio.crypto.fields"):
        assert seal(12.5, None) == 12.5
    assert "plaintext" in caplog.text


def test_seal_strict_refuses_plaintext():
    with pytest.raises(SessionLocked):
        seal(12.5, None, strict=True)


def test_seal_rejects_plaintext_that_would_read_as_ciphertext():
    with pytest.raises(InvalidInput):
        seal("10:30", None)


@pytest.mark.parametrize("key_fixture", [None, "alice_key", "wrong_key"])
def test_legacy_plaintext_renders_with_or_without_key(request, key_fixture):
    key = request.getfixturevalue(key_fixture) if key_fixture else None

    with patch.object(FieldCodec, "decrypt") as decrypt:
        view = reveal(42.0, key)

    decrypt.assert_not_called()
    assert view.state is FieldState.PLAIN
    assert view.value == 42.0
    assert view.display == "42.0"
    assert not view.is_encrypted


def test_encrypted_without_key_is_locked_and_not_attempted(alice_key):
    field = FieldCodec.encrypt(7, alice_key)

    with patch.object(FieldCodec, "decrypt") as decrypt:
        view = reveal(field, None)

    decrypt.assert_not_called()
    assert view.is_locked
    assert view.value is None
    assert view.display == LOCKED_PLACEHOLDER


def test_encrypted_with_right_key_decrypts(alice_key):
    view = reveal(FieldCodec.encrypt(12.5, alice_key), alice_key)

    assert view.state is FieldState.DECRYPTED
    assert view.value == 12.5
    assert view.display == "12.5"
    assert view.is_encrypted


def test_wrong_key_renders_locked_and_logs(alice_key, wrong_key, caplog):
    field = FieldCodec.encrypt(12.5, alice_key)

    with caplog.at_level(logging.WARNING, logger="privatefolio.crypto.fields"):
        view = reveal(field, wrong_key, "BTC.quantity")

    assert view.is_locked
    assert "BTC.quantity" in caplog.text
    assert "authentication failed" in caplog.text


def test_malformed_renders_locked_and_logs(alice_key, caplog):
    with caplog.at_level(logging.WARNING, logger="privatefolio.crypto.fields"):
        view = reveal("notvalidhex:zz", alice_key)

    assert view.is_locked
    assert "malformed" in caplog.text


def test_corrupt_payload_is_reported_as_error(alice_key, caplog):
    nonce = b"\x01" * 12
    field = str(EncryptedField(nonce=nonce, ciphertext=alice_key.encrypt(nonce, b"{oops")))

    with caplog.at_level(logging.WARNING, logger="privatefolio.crypto.fields"):
        view = reveal(field, alice_key)

    assert view.is_locked
    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_wrong_key_and_malformed_look_identical(alice_key, wrong_key):
    """The rendered form does not reveal why a field is locked"""
    wrong = reveal(FieldCodec.encrypt(1, alice_key), wrong_key)
    malformed = reveal("abc:xyz", alice_key)

    assert wrong == malformed
    assert wrong.display == malformed.display == LOCKED_PLACEHOLDER


def test_logs_never_contain_values(alice_key, wrong_key, caplog):
    field = FieldCodec.encrypt(98765.4321, alice_key)
    with caplog.at_level(logging.DEBUG):
        reveal(field, wrong_key)
        seal(98765.4321, None)

    assert "98765" not in caplog.text
    assert field not in caplog.text


def test_reveal_rejects_a_non_key(alice_key):
    """Bad stored data never raises, but passing raw bytes as the key does"""
    with pytest.raises(InvalidInput):
        reveal(FieldCodec.encrypt(1, alice_key), b"\x00" * 32)

    # Plaintext needs no key, so nothing is checked
    assert reveal(7, b"\x00" * 32).value == 7
