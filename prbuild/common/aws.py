"""boto3 client construction.

Clients are built with a single attempt per call. Retry policy belongs to
the scheduler driving the bridge, not to botocore.
"""

import boto3
from botocore.config import Config

NO_RETRIES = Config(retries={'total_max_attempts': 1, 'mode': 'standard'})


def aws_client(service_name: str, **kwargs):
    """Create a boto3 client that never retries a failed call."""
    return boto3.client(service_name, config=NO_RETRIES, **kwargs)
