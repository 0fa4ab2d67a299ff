"""Credential provider factory functions."""

from .aws import AWSSecretsCredentialProvider
from .base import CredentialProvider
from .environment import DEFAULT_ENV_PREFIX, EnvironmentCredentialProvider
from .keyring_store import KeyringCredentialProvider


class UnknownProviderTypeError(ValueError):
    """Raised when an unknown credential provider type is specified."""

    def __init__(self, provider_type: str) -> None:
        super().__init__(f"Unknown provider type: {provider_type}")
        self.provider_type = provider_type


def create_credential_provider(
    provider_type: str = "keyring",
    aws_region: str | None = None,
    aws_endpoint_url: str | None = None,
    env_prefix: str | None = None,
) -> CredentialProvider:
    """Create a credential provider instance.

    Args:
        provider_type: "keyring" (OS credential store), "env"/"environment" or "aws".
        aws_region: AWS region for the Secrets Manager provider.
        aws_endpoint_url: Custom endpoint URL for the Secrets Manager provider.
        env_prefix: Variable prefix for the environment provider.

    Returns:
        The configured credential provider.

    Raises:
        UnknownProviderTypeError: If `provider_type` is not recognised.
    """
    normalized = provider_type.strip().lower()
    if normalized == "keyring":
        return KeyringCredentialProvider()
    if normalized in ("env", "environment"):
        return EnvironmentCredentialProvider(
            prefix=env_prefix if env_prefix is not None else DEFAULT_ENV_PREFIX
        )
    if normalized == "aws":
        return AWSSecretsCredentialProvider(
            region=aws_region, endpoint_url=aws_endpoint_url
        )
    raise UnknownProviderTypeError(provider_type)
