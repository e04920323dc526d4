"""
Master Key Derivation
PBKDF2-HMAC-SHA256 key derivation for client-side field encryption

Key Derivation Flow:
  1. User supplies password at login (or re-enters it to unlock)
  2. Salt is the username (unique per account, never stored separately)
  3. masterKey = PBKDF2(password, salt, 100 000 iterations, SHA-256) → 32 bytes
  4. Raw bytes are handed straight to AES-GCM and never kept or returned

Parameters match the browser client (WebCrypto deriveKey with
{ name: "PBKDF2", iterations: 100000, hash: "SHA-256" } → AES-GCM 256),
so keys derived here open ciphertext written there and vice versa.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from privatefolio.crypto.errors import InvalidInput


class MasterKey:
    """
    Non-extractable AES-256-GCM key.

    Only encrypt/decrypt are exposed. The raw key bytes are consumed by the
    AESGCM primitive at construction and no attribute holds them afterwards.
    Instances refuse to be pickled or copied so they cannot leak into
    storage, caches or request payloads.
    """

    __slots__ = ("_aead",)

    def __init__(self, key_material: bytes):
        if len(key_material) != KeyDeriver.KEY_LEN:
            raise InvalidInput("Master key must be 32 bytes")
        self._aead = AESGCM(key_material)

    def encrypt(self, nonce: bytes, plaintext: bytes) -> bytes:
        """Return ciphertext with the 16-byte GCM tag appended."""
        return self._aead.encrypt(nonce, plaintext, None)

    def decrypt(self, nonce: bytes, ciphertext: bytes) -> bytes:
        """Raises cryptography.exceptions.InvalidTag when the tag does not verify."""
        return self._aead.decrypt(nonce, ciphertext, None)

    def __repr__(self) -> str:
        return "<MasterKey (non-extractable)>"

    def __reduce__(self):
        raise TypeError("MasterKey cannot be serialized")

    def __copy__(self):
        raise TypeError("MasterKey cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("MasterKey cannot be copied")


class KeyDeriver:
    """Derives master keys from a password and a per-user salt."""

    ITERATIONS = 100_000
    KEY_LEN = 32  # 256 bits for AES-256

    @classmethod
    def derive(cls, password: str, salt: str) -> MasterKey:
        """
        Derive the master key for a user.

        Args:
            password: The user's password
            salt: Per-user salt (the username)

        Returns:
            MasterKey usable for field encryption

        Raises:
            InvalidInput: If password or salt is empty or not a string
        """
        if not isinstance(password, str) or not password:
            raise InvalidInput("Password must be a non-empty string")
        if not isinstance(salt, str) or not salt:
            raise InvalidInput("Salt must be a non-empty string")

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=cls.KEY_LEN,
            salt=salt.encode("utf-8"),
            iterations=cls.ITERATIONS,
        )
        return MasterKey(kdf.derive(password.encode("utf-8")))


def derive(password: str, salt: str) -> MasterKey:
    """Module-level shortcut for KeyDeriver.derive."""
    return KeyDeriver.derive(password, salt)
