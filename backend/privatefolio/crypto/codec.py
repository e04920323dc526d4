"""
Field Codec
AES-256-GCM encryption of individual scalar values

Wire format (what the server stores in place of a number):

    <nonce hex>:<ciphertext+tag hex>

  - nonce: 12 random bytes (96 bits), fresh for every call
  - ciphertext: AES-GCM output over the compact JSON form of the value,
    with the 16-byte authentication tag appended
  - lowercase hex, exactly one ':' separator

A serialized number never contains ':', so the separator alone tells an
encrypted value apart from a legacy plaintext one.
"""

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from cryptography.exceptions import InvalidTag

from privatefolio.crypto.errors import (
    AuthenticationFailure,
    DeserializationError,
    InvalidInput,
    MalformedField,
    SessionLocked,
)
from privatefolio.crypto.keys import MasterKey

SEPARATOR = ":"
NONCE_LEN = 12  # 96 bits for AES-GCM
TAG_LEN = 16

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def _decode_hex(part: str, label: str) -> bytes:
    if not part:
        raise MalformedField(f"Encrypted field has an empty {label}")
    if len(part) % 2 or not _HEX_RE.fullmatch(part):
        raise MalformedField(f"Encrypted field {label} is not valid hex")
    return bytes.fromhex(part)


@dataclass(frozen=True)
class EncryptedField:
    """Parsed form of a stored "nonce:ciphertext" string."""

    nonce: bytes
    ciphertext: bytes

    @classmethod
    def parse(cls, value: str) -> "EncryptedField":
        """
        Parse the stored string form.

        Raises:
            MalformedField: If the separator is missing or repeated, either
                half is empty or not even-length hex, the nonce is not 12
                bytes, or the ciphertext is shorter than the GCM tag
        """
        if not isinstance(value, str):
            raise MalformedField("Encrypted field must be a string")
        if value.count(SEPARATOR) != 1:
            raise MalformedField("Encrypted field must contain exactly one separator")

        nonce_hex, _, cipher_hex = value.partition(SEPARATOR)
        nonce = _decode_hex(nonce_hex, "nonce")
        ciphertext = _decode_hex(cipher_hex, "ciphertext")

        if len(nonce) != NONCE_LEN:
            raise MalformedField(f"Nonce must be {NONCE_LEN} bytes, got {len(nonce)}")
        if len(ciphertext) < TAG_LEN:
            raise MalformedField("Ciphertext is shorter than the authentication tag")

        return cls(nonce=nonce, ciphertext=ciphertext)

    def __str__(self) -> str:
        return f"{self.nonce.hex()}{SEPARATOR}{self.ciphertext.hex()}"


def serialize(value: Any) -> bytes:
    """Canonical text form of a value: compact JSON, no NaN/Infinity."""
    try:
        text = json.dumps(value, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Value is not JSON-serializable: {e}") from e
    return text.encode("utf-8")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def deserialize(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"), parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise DeserializationError("Decrypted payload is not valid JSON") from e


def _require_key(key: Optional[MasterKey]) -> MasterKey:
    if key is None:
        raise SessionLocked("No master key held; unlock the session first")
    if not isinstance(key, MasterKey):
        raise InvalidInput("key must be a MasterKey")
    return key


class FieldCodec:
    """Encrypts and decrypts single field values with a MasterKey."""

    @staticmethod
    def encrypt(value: Any, key: MasterKey) -> str:
        """
        Encrypt a JSON-serializable value.

        Every call draws a new random nonce, so encrypting the same value
        twice never produces the same string.

        Returns:
            "nonce_hex:ciphertext_hex" string
        """
        key = _require_key(key)
        plaintext = serialize(value)
        nonce = os.urandom(NONCE_LEN)
        ciphertext = key.encrypt(nonce, plaintext)
        return str(EncryptedField(nonce=nonce, ciphertext=ciphertext))

    @staticmethod
    def decrypt(field: Union[str, EncryptedField], key: MasterKey) -> Any:
        """
        Decrypt a stored field back into its original value.

        Raises:
            MalformedField: If the string is not a well-formed encrypted field
            AuthenticationFailure: If the tag does not verify (wrong key, tampering)
            DeserializationError: If the decrypted payload is not valid JSON
        """
        if not isinstance(field, EncryptedField):
            field = EncryptedField.parse(field)
        key = _require_key(key)

        try:
            plaintext = key.decrypt(field.nonce, field.ciphertext)
        except InvalidTag as e:
            raise AuthenticationFailure("Field authentication failed") from e

        return deserialize(plaintext)


def encrypt(value: Any, key: MasterKey) -> str:
    return FieldCodec.encrypt(value, key)


def decrypt(field: Union[str, EncryptedField], key: MasterKey) -> Any:
    return FieldCodec.decrypt(field, key)
