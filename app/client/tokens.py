"""Access-token persistence for the client.

``KeyringTokenStore`` keeps the token in the OS credential store;
``MemoryTokenStore`` is for tests and short-lived scripts.
"""
import logging
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger(__name__)

SERVICE_NAME = "verser"


class TokenStore(Protocol):
    def load(self) -> str | None:
        ...

    def save(self, token: str) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryTokenStore:
    def __init__(self, token: str | None = None):
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class KeyringTokenStore:
    def __init__(self, account: str = "access_token", service: str = SERVICE_NAME):
        self.account = account
        self.service = service

    def load(self) -> str | None:
        try:
            return keyring.get_password(self.service, self.account)
        except KeyringError:
            logger.warning("tokens: keyring read failed", exc_info=True)
            return None

    def save(self, token: str) -> None:
        keyring.set_password(self.service, self.account, token)
        logger.debug("tokens: stored %s/%s", self.service, self.account)

    def clear(self) -> None:
        try:
            keyring.delete_password(self.service, self.account)
        except PasswordDeleteError:
            # nothing stored
            pass
