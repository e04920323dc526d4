"""
Client-side field encryption for PrivateFolio.

Handles:
- Master key derivation (PBKDF2-HMAC-SHA256)
- Field encryption (AES-256-GCM, "nonce:ciphertext" hex strings)
- Plaintext / ciphertext coexistence in untyped columns
"""

from .errors import (
    FieldCryptoError,
    InvalidInput,
    MalformedField,
    AuthenticationFailure,
    DeserializationError,
    SessionLocked,
)
from .keys import KeyDeriver, MasterKey, derive
from .codec import FieldCodec, EncryptedField, encrypt, decrypt
from .fields import FieldState, FieldView, PlainField, classify, is_encrypted, reveal, seal
from .session import EncryptionSession

__all__ = [
    "FieldCryptoError", "InvalidInput", "MalformedField", "AuthenticationFailure",
    "DeserializationError", "SessionLocked",
    "KeyDeriver", "MasterKey", "derive",
    "FieldCodec", "EncryptedField", "encrypt", "decrypt",
    "FieldState", "FieldView", "PlainField", "classify", "is_encrypted", "reveal", "seal",
    "EncryptionSession",
]
