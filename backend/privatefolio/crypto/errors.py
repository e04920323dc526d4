"""
Field Encryption Errors
Failure taxonomy for key derivation and field encryption

  InvalidInput          — bad derivation/encryption arguments, fatal to the call
  MalformedField        — stored string is not a well-formed "iv:ciphertext" value
  AuthenticationFailure — GCM tag did not verify (wrong key, or tampered data)
  DeserializationError  — decrypted bytes are not valid JSON (data corruption)
  SessionLocked         — strict write attempted without an unlocked key
"""


class FieldCryptoError(Exception):
    """Base class for all field encryption failures."""


class InvalidInput(FieldCryptoError, ValueError):
    pass


class MalformedField(FieldCryptoError, ValueError):
    pass


class AuthenticationFailure(FieldCryptoError):
    pass


class DeserializationError(FieldCryptoError, ValueError):
    pass


class SessionLocked(FieldCryptoError):
    pass
