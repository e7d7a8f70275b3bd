"""Secret retrieval from AWS SSM Parameter Store."""

from botocore.exceptions import BotoCoreError, ClientError
import structlog

from prbuild.common.aws import aws_client
from prbuild.common.exceptions import SecretUnavailable

logger = structlog.get_logger()


class SecretFetcher:
    """
    Reads decrypted SecureString parameters from SSM, one attempt per call.

    Nothing is cached here; callers that need a value more than once per
    process hold on to it themselves (see CredentialSession).
    """

    def __init__(self, ssm_client=None):
        """
        Initialize SecretFetcher.

        Args:
            ssm_client: Optional boto3 SSM client (for testing)
        """
        self._ssm = ssm_client or aws_client('ssm')

    def fetch(self, name: str) -> str:
        """
        Fetch a single parameter value.

        Args:
            name: Parameter name in SSM

        Returns:
            The decrypted parameter value

        Raises:
            SecretUnavailable: If the parameter cannot be read or has no value
        """
        try:
            response = self._ssm.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error = e.response.get('Error', {})
            logger.error("Parameter lookup failed",
                         parameter=name,
                         error_code=error.get('Code', ''))
            raise SecretUnavailable(
                f"SSM error for {name}: {error.get('Code', '')} - {error.get('Message', str(e))}",
                name=name
            ) from e
        except BotoCoreError as e:
            logger.error("Parameter store unreachable", parameter=name, error=str(e))
            raise SecretUnavailable(
                f"SSM connection error for {name}: {str(e)}",
                name=name
            ) from e

        value = response.get('Parameter', {}).get('Value')
        if not value:
            raise SecretUnavailable(f"SSM parameter {name} has no value", name=name)

        logger.debug("Parameter fetched", parameter=name)
        return value
