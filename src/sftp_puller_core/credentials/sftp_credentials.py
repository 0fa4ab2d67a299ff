"""SFTP credential resolution."""

from dataclasses import dataclass, field

from .base import CredentialProvider


@dataclass(frozen=True)
class SftpCredentials:
    """SFTP credentials container."""

    username: str
    password: str = field(repr=False)


class SftpCredentialsWrapper:
    """Wrapper that provides SFTP credentials using a credential provider."""

    def __init__(self, credential_name: str, credential_provider: CredentialProvider) -> None:
        """Initialize the SFTP credentials wrapper.

        Args:
            credential_name: Credential reference name from configuration.
            credential_provider: Provider used to resolve the username and password.
        """
        self.credential_name = credential_name
        self.credential_provider = credential_provider
        self._cached_credentials: SftpCredentials | None = None

    def get_credentials(self) -> SftpCredentials:
        """Get SFTP credentials, using cache if available.

        Raises:
            CredentialNotFoundError: When either value cannot be resolved.
        """
        if self._cached_credentials is None:
            username = self.credential_provider.get_credential(
                self.credential_name, "username"
            )
            password = self.credential_provider.get_credential(
                self.credential_name, "password"
            )
            self._cached_credentials = SftpCredentials(
                username=username, password=password
            )

        return self._cached_credentials

    def clear(self) -> None:
        """Clear the cached credentials."""
        self._cached_credentials = None
        self.credential_provider.clear()
