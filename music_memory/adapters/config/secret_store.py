"""OS keychain storage for the Spotify client secret."""

from __future__ import annotations

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

DEFAULT_SERVICE_NAME = "music-memory"

logger = logging.getLogger("music_memory.secrets")


class KeyringSecretStore:
    """Store and retrieve secrets from the OS keychain."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        self.service_name = service_name

    def get(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service_name, key)
        except KeyringError:
            logger.warning("Keychain unavailable, cannot read %s", key)
            return None

    def set(self, key: str, value: str) -> bool:
        try:
            if value:
                keyring.set_password(self.service_name, key, value)
            else:
                return self.delete(key)
            return True
        except KeyringError:
            logger.warning("Keychain unavailable, %s kept in config file", key)
            return False

    def delete(self, key: str) -> bool:
        try:
            keyring.delete_password(self.service_name, key)
            return True
        except PasswordDeleteError:
            # Nothing stored under this key.
            return True
        except KeyringError:
            return False
