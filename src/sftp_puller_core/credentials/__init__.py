"""Credential management and authentication providers."""

from .aws import AWSSecretsCredentialProvider
from .base import CredentialProvider
from .environment import EnvironmentCredentialProvider
from .factory import UnknownProviderTypeError, create_credential_provider
from .keyring_store import KeyringCredentialProvider
from .sftp_credentials import SftpCredentials, SftpCredentialsWrapper

__all__ = [
    "AWSSecretsCredentialProvider",
    "CredentialProvider",
    "EnvironmentCredentialProvider",
    "KeyringCredentialProvider",
    "SftpCredentials",
    "SftpCredentialsWrapper",
    "UnknownProviderTypeError",
    "create_credential_provider",
]
