# Built-in imports
import json
from typing import Any, Dict, Optional

# External imports
import boto3
from botocore.exceptions import ClientError

# Own imports
from common.logger import custom_logger

logger = custom_logger()


class SecretsHelper:
    """Custom Secrets Manager Helper for reading the bot JSON secret."""

    def __init__(self, secret_name: str, region_name: Optional[str] = None) -> None:
        """
        :param secret_name (str): Name of the secret to load (JSON key/value pairs).
        :param region_name (Optional(str)): AWS region of the secret.
        """
        self.secret_name = secret_name
        self.secrets_client = boto3.client("secretsmanager", region_name=region_name)
        self._cached_secret: Optional[Dict[str, Any]] = None

    def _load_secret(self) -> Dict[str, Any]:
        if self._cached_secret is not None:
            return self._cached_secret

        logger.info(f"Loading secret {self.secret_name} from Secrets Manager")
        try:
            response = self.secrets_client.get_secret_value(SecretId=self.secret_name)
        except ClientError as error:
            logger.error(
                "get_secret_value operation failed",
                extra={"secret_name": self.secret_name, "error": str(error)},
            )
            raise error

        secret_string = response.get("SecretString") or "{}"
        try:
            secret = json.loads(secret_string)
        except json.JSONDecodeError as error:
            logger.error(
                "Secret is not a JSON document",
                extra={"secret_name": self.secret_name},
            )
            raise ValueError(f"Secret {self.secret_name} is not valid JSON") from error

        self._cached_secret = secret if isinstance(secret, dict) else {}
        return self._cached_secret

    def get_secret_value(self, key: Optional[str] = None) -> Any:
        """
        Return the whole secret payload, or a single entry when ``key`` is given.
        :param key (Optional(str)): entry of the JSON secret to return.
        """
        secret = self._load_secret()
        if key is None:
            return secret
        return secret.get(key)
