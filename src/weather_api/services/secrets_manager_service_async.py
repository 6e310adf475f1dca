import json
import logging
from typing import Any, Dict, Optional

import aioboto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


def parse_secret_string(
    secret_name: str, secret_string: Optional[str]
) -> Dict[str, Any]:
    """Decode a `SecretString` holding a JSON object.

    Raises:
        ValueError: If the string is empty or decodes to anything but a
            JSON object.
    """
    if not secret_string:
        raise ValueError(f"SecretString for {secret_name} is empty")

    value = json.loads(secret_string)
    if not isinstance(value, dict):
        raise ValueError(f"SecretString for {secret_name} is not a dict")
    return value


class AsyncSecretsManagerService:
    """Reads configuration secrets (database URL, provider API key).

    Decoded secrets are memoized per instance, so a warm Lambda container
    asks Secrets Manager once per secret name.

    Attributes:
        session (aioboto3.Session): aioboto3 session used to create clients.
    """

    def __init__(self) -> None:
        self.session = aioboto3.Session()
        self._resolved: Dict[str, Dict[str, Any]] = {}

    async def _read_secret_string(self, secret_name: str) -> Optional[str]:
        try:
            async with self.session.client("secretsmanager") as client:
                response = await client.get_secret_value(SecretId=secret_name)
        except ClientError as e:
            logger.error(f"Secrets Manager refused {secret_name}: {e}")
            raise
        return response.get("SecretString")

    async def get_secret(self, secret_name: str) -> Dict[str, Any]:
        """Return the JSON object stored under `secret_name`.

        Args:
            secret_name (str): The name or ARN of the secret to retrieve.

        Returns:
            Dict[str, Any]: Decoded secret.

        Raises:
            ValueError: If the secret is empty or not a JSON object.
            botocore.exceptions.ClientError: If the AWS API call fails.
        """
        cached = self._resolved.get(secret_name)
        if cached is None:
            raw = await self._read_secret_string(secret_name)
            cached = parse_secret_string(secret_name, raw)
            self._resolved[secret_name] = cached
        return cached
