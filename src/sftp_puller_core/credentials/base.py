"""Base credential provider interface and protocols.

This module defines the base CredentialProvider protocol that all credential
providers must implement for consistent authentication.
"""

from typing import Protocol


class CredentialProvider(Protocol):
    """Interface for credential providers."""

    def get_credential(self, credential_name: str, config_key: str) -> str:
        """Get a credential value for the given credential name and key.

        Args:
            credential_name: The credential reference name from configuration.
            config_key: The credential key ("username" or "password").

        Returns:
            The credential value

        Raises:
            CredentialNotFoundError: When the credential or key does not exist.
        """
        ...

    def clear(self) -> None:
        """Clear any cached credentials."""
        ...
