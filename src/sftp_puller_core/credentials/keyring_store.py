"""OS credential store provider.

This module provides the KeyringCredentialProvider class which resolves a
username/password pair stored under a generic credential name in the
operating system's credential store (Windows Credential Manager, macOS
Keychain, Secret Service) through the keyring library.
"""

import keyring
from keyring.credentials import Credential
from keyring.errors import KeyringError

from sftp_puller_core.exceptions import CredentialNotFoundError

_SUPPORTED_KEYS = ("username", "password")


class KeyringCredentialProvider:
    """Credential provider backed by the OS credential store."""

    def __init__(self) -> None:
        self._cache: dict[str, Credential] = {}

    def get_credential(self, credential_name: str, config_key: str) -> str:
        """Get the username or password stored under `credential_name`.

        Raises:
            CredentialNotFoundError: When no credential exists under the name,
                the backend fails, or the key is not supported.
        """
        if config_key not in _SUPPORTED_KEYS:
            msg = f"Unsupported credential key '{config_key}'"
            raise CredentialNotFoundError(msg, credential_name)

        credential = self._cache.get(credential_name)
        if credential is None:
            try:
                credential = keyring.get_credential(credential_name, None)
            except KeyringError as e:
                msg = f"Credential store error for '{credential_name}': {e}"
                raise CredentialNotFoundError(msg, credential_name) from e
            if credential is None:
                msg = f"Credential '{credential_name}' not found in the OS credential store"
                raise CredentialNotFoundError(msg, credential_name)
            self._cache[credential_name] = credential

        value = getattr(credential, config_key)
        if not value:
            msg = f"Credential '{credential_name}' has no {config_key}"
            raise CredentialNotFoundError(msg, credential_name)
        return str(value)

    def clear(self) -> None:
        self._cache.clear()
