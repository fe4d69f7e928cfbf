# batch_scaler/fleet/client.py
import boto3
from botocore.config import Config
from typing import Any, Optional

from batch_scaler.log_handler.logging_config import get_logger


logger = get_logger(__name__)


def create_batch_client(
    access_key_id: str,
    secret_access_key: str,
    region: str,
    timeout: float = 15.0,
    max_attempts: int = 2,
    **kwargs
) -> Any:
    """
    Create an AWS Batch client with bounded network timeouts.

    Args:
        access_key_id: AWS access key ID
        secret_access_key: AWS secret access key
        region: AWS region hosting the job queue
        timeout: Connect and read timeout applied to every call, in seconds
        max_attempts: Total attempts per call, including retries. Use 1 for
            clients that call SubmitJob, which is not idempotent
        **kwargs: Additional parameters to pass to boto3.client()

    Returns:
        A botocore client for the "batch" service
    """
    client_config = Config(
        region_name=region,
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )

    try:
        client = boto3.client(
            "batch",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
            config=client_config,
            **kwargs
        )
        logger.info(f"AWS Batch client created for region {region}")
        return client
    except Exception as e:
        logger.error(f"Failed to create AWS Batch client: {str(e)}")
        raise


def close_batch_client(client: Optional[Any]) -> None:
    """Release the client's HTTP connection pool."""
    if client is None:
        return
    try:
        client.close()
        logger.info("AWS Batch client closed")
    except Exception as e:
        logger.error(f"Error closing AWS Batch client: {str(e)}")
