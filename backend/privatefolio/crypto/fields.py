"""
Plaintext / Ciphertext Coexistence
Read and write protocol for numeric columns that may hold either form

The quantity and cost_basis columns are untyped: a row may hold a plain
number (written before encryption existed, or while the session was locked)
or an encrypted "nonce:ciphertext" string. Detection is structural: a value
is ciphertext if and only if it is a string containing the separator.

  WRITE (seal):   key held → encrypt; no key → store the raw value
  READ  (reveal): no separator        → PLAIN, never decrypted
                  separator, no key   → LOCKED, decrypt not attempted
                  separator, key, ok  → DECRYPTED
                  separator, key, err → LOCKED, cause logged

Read failures never propagate: the caller always gets a FieldView.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from privatefolio.crypto.codec import SEPARATOR, EncryptedField, FieldCodec
from privatefolio.crypto.errors import (
    AuthenticationFailure,
    DeserializationError,
    InvalidInput,
    MalformedField,
    SessionLocked,
)
from privatefolio.crypto.keys import MasterKey

logger = logging.getLogger(__name__)

LOCKED_PLACEHOLDER = "LOCKED"


@dataclass(frozen=True)
class PlainField:
    """A stored value that was written without encryption."""

    value: Any


StoredField = Union[PlainField, EncryptedField]


def is_encrypted(raw: Any) -> bool:
    """Structural test: only strings containing the separator are ciphertext."""
    return isinstance(raw, str) and SEPARATOR in raw


def classify(raw: Any) -> StoredField:
    """
    Turn a raw stored value into its tagged form.

    Raises:
        MalformedField: If the value carries the separator but is not a
            well-formed encrypted field
    """
    if is_encrypted(raw):
        return EncryptedField.parse(raw)
    return PlainField(raw)


class FieldState(str, Enum):
    PLAIN = "plain"
    DECRYPTED = "decrypted"
    LOCKED = "locked"


@dataclass(frozen=True)
class FieldView:
    """Render-ready result of reading one field."""

    state: FieldState
    value: Any = None

    @property
    def is_locked(self) -> bool:
        return self.state is FieldState.LOCKED

    @property
    def is_encrypted(self) -> bool:
        return self.state is not FieldState.PLAIN

    @property
    def display(self) -> str:
        # Wrong key and malformed data render identically
        if self.is_locked:
            return LOCKED_PLACEHOLDER
        return str(self.value)


def seal(value: Any, key: Optional[MasterKey], *, strict: bool = False) -> Any:
    """
    Prepare a value for storage.

    Args:
        value: The plaintext value (a number in practice)
        key: The session's master key, or None if the session is locked
        strict: Refuse to write plaintext when no key is held

    Returns:
        Encrypted field string, or the raw value when no key is held

    Raises:
        SessionLocked: If strict and no key is held
        InvalidInput: If a plaintext value would be mistaken for ciphertext
    """
    if key is None:
        if strict:
            raise SessionLocked("Refusing to store plaintext while the session is locked")
        if is_encrypted(value):
            raise InvalidInput("Plaintext value must not contain the field separator")
        logger.warning("No master key held; field stored as plaintext")
        return value

    return FieldCodec.encrypt(value, key)


def reveal(raw: Any, key: Optional[MasterKey], field_name: str = "field") -> FieldView:
    """
    Read a stored value for display. Never raises for bad stored data;
    a key that is not a MasterKey is a caller error and raises InvalidInput.

    Args:
        raw: Value exactly as returned by storage
        key: The session's master key, or None if the session is locked
        field_name: Label used in log messages

    Returns:
        FieldView describing the plaintext, decrypted or locked value
    """
    if not is_encrypted(raw):
        return FieldView(FieldState.PLAIN, raw)

    if key is None:
        return FieldView(FieldState.LOCKED)

    try:
        value = FieldCodec.decrypt(raw, key)
    except AuthenticationFailure:
        logger.warning(f"Could not decrypt {field_name}: authentication failed (wrong key or tampered data)")
        return FieldView(FieldState.LOCKED)
    except MalformedField as e:
        logger.warning(f"Could not decrypt {field_name}: malformed encrypted value ({e})")
        return FieldView(FieldState.LOCKED)
    except DeserializationError:
        logger.error(f"Decrypted {field_name} is not valid JSON; stored data may be corrupted")
        return FieldView(FieldState.LOCKED)

    return FieldView(FieldState.DECRYPTED, value)
