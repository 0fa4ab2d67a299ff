"""AWS Secrets Manager credential provider.

This module provides the AWSSecretsCredentialProvider class for retrieving
SFTP credentials stored as a JSON secret in AWS Secrets Manager.
"""

import json
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sftp_puller_core.exceptions import CredentialNotFoundError

DEFAULT_AWS_REGION = "eu-west-2"


class AWSSecretsCredentialProvider:
    """Credential provider that fetches credentials from AWS Secrets Manager."""

    def __init__(
        self, region: str | None = None, endpoint_url: str | None = None
    ) -> None:
        """Initialize the AWS Secrets credential provider.

        Args:
            region: AWS region to use for Secrets Manager. Defaults to AWS_REGION env var or eu-west-2.
            endpoint_url: Optional custom endpoint URL for testing or local development.
        """
        if region is None:
            region = os.getenv("AWS_REGION", DEFAULT_AWS_REGION)
        self.region = region
        self.endpoint_url = endpoint_url
        self._secrets_cache: dict[str, dict[str, object]] = {}

    def _load_secret(self, secret_name: str) -> dict[str, object]:
        if secret_name in self._secrets_cache:
            return self._secrets_cache[secret_name]

        session = boto3.session.Session()
        client_kwargs = {"service_name": "secretsmanager", "region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        client = session.client(**client_kwargs)  # type: ignore[call-overload]

        try:
            response = client.get_secret_value(SecretId=secret_name)
            secret_data = json.loads(response["SecretString"])
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code == "ResourceNotFoundException":
                msg = f"Secret '{secret_name}' not found"
            elif error_code == "AccessDeniedException":
                msg = f"Access denied to secret '{secret_name}'"
            else:
                msg = f"AWS Secrets Manager error: {e}"
            raise CredentialNotFoundError(msg, secret_name) from e
        except BotoCoreError as e:
            msg = f"AWS Secrets Manager error: {e}"
            raise CredentialNotFoundError(msg, secret_name) from e
        except json.JSONDecodeError as e:
            msg = f"Secret '{secret_name}' not valid JSON"
            raise CredentialNotFoundError(msg, secret_name) from e

        if not isinstance(secret_data, dict):
            msg = f"Secret '{secret_name}' is not a JSON object"
            raise CredentialNotFoundError(msg, secret_name)

        self._secrets_cache[secret_name] = secret_data
        return secret_data

    def get_credential(self, credential_name: str, config_key: str) -> str:
        """Get one key of the JSON secret named `credential_name`."""
        secret_data = self._load_secret(credential_name)

        if config_key not in secret_data:
            msg = f"Key '{config_key}' not found in secret '{credential_name}'"
            raise CredentialNotFoundError(msg, credential_name)

        value = secret_data[config_key]
        if not isinstance(value, str):
            msg = f"Credential value for key '{config_key}' is not a string: {type(value)}"
            raise CredentialNotFoundError(msg, credential_name)
        return value

    def clear(self) -> None:
        """Clear the secrets cache."""
        self._secrets_cache.clear()
