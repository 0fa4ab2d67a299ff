"""Environment variable credential provider.

This module provides the EnvironmentCredentialProvider class for retrieving
credentials from environment variables, useful for development and testing.
"""

import os

from sftp_puller_core.exceptions import CredentialNotFoundError

DEFAULT_ENV_PREFIX = "SFTP_PULLER_CREDENTIAL_"


class EnvironmentCredentialProvider:
    """Credential provider that fetches credentials from environment variables."""

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX) -> None:
        """Initialize the environment credential provider.

        Args:
            prefix: Prefix added to environment variable names.
        """
        self.prefix = prefix
        self._requested_vars: list[str] = []

    def variable_name(self, credential_name: str, config_key: str) -> str:
        """Return the environment variable consulted for a credential key.

        The name has the form ``{prefix}{CREDENTIAL_NAME}_{KEY}`` with dashes,
        dots and spaces in the credential name replaced by underscores.
        """
        normalized = credential_name.upper()
        for char in "-. ":
            normalized = normalized.replace(char, "_")
        return f"{self.prefix}{normalized}_{config_key.upper()}"

    def get_credential(self, credential_name: str, config_key: str) -> str:
        """Get credential from environment variable.

        Args:
            credential_name: Credential reference name (e.g., 'partner-sftp').
            config_key: Credential key ('username' or 'password').

        Returns:
            The credential value from the environment variable.

        Raises:
            CredentialNotFoundError: When the required environment variable is
                not set. The message lists every requested variable still missing.
        """
        env_var_name = self.variable_name(credential_name, config_key)

        if env_var_name not in self._requested_vars:
            self._requested_vars.append(env_var_name)

        value = os.getenv(env_var_name)
        if value is None:
            missing = ", ".join(self.get_missing_variables())
            msg = (
                f"Environment variable '{env_var_name}' not found. "
                f"Missing variables: {missing}"
            )
            raise CredentialNotFoundError(msg, credential_name)

        return value

    def clear(self) -> None:
        """Clear the requested variables tracking."""
        self._requested_vars.clear()

    def get_missing_variables(self) -> list[str]:
        """Get list of environment variables that were requested but not found."""
        return [var for var in self._requested_vars if os.getenv(var) is None]
