"""
Encryption Session
Holds the master key in memory between unlock and lock/logout
"""

from typing import Optional

from privatefolio.crypto.keys import KeyDeriver, MasterKey


class EncryptionSession:
    """In-memory holder for one user's master key."""

    def __init__(self):
        # Unlocked key (cleared on lock/logout)
        self._key: Optional[MasterKey] = None

    @property
    def is_unlocked(self) -> bool:
        return self._key is not None

    @property
    def key(self) -> Optional[MasterKey]:
        """The master key, or None while locked."""
        return self._key

    def unlock(self, username: str, password: str) -> MasterKey:
        """
        Derive and hold the master key.

        Raises:
            InvalidInput: If username or password is empty
        """
        self._key = KeyDeriver.derive(password, username)
        return self._key

    def lock(self) -> None:
        self._key = None
