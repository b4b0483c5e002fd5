"""Build boto3 service clients from explicit AWS settings."""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig

from core.config import AwsSettings
from core.logging_config import get_logger

logger = get_logger(__name__)


def build_boto3_client(
    service_name: str,
    aws: AwsSettings,
    *,
    endpoint_url: Optional[str] = None,
    read_timeout: Optional[float] = None,
    max_attempts: Optional[int] = None,
) -> Any:
    """Return a boto3 client for ``service_name``.

    Static credentials are used only when both halves are configured;
    otherwise boto3's default provider chain applies (env, profile, role).
    """

    boto_config = BotoConfig(
        region_name=aws.region,
        retries={
            "max_attempts": max_attempts if max_attempts is not None else aws.max_retry_attempts,
            "mode": "standard",
        },
        connect_timeout=aws.connect_timeout,
        read_timeout=read_timeout if read_timeout is not None else aws.read_timeout,
    )

    client_args: dict[str, Any] = {
        "service_name": service_name,
        "config": boto_config,
    }
    if aws.access_key_id and aws.secret_access_key:
        client_args.update(
            {
                "aws_access_key_id": aws.access_key_id,
                "aws_secret_access_key": aws.secret_access_key,
            }
        )
    if endpoint_url:
        client_args["endpoint_url"] = endpoint_url

    client = boto3.client(**client_args)
    logger.info("aws_client_initialised", service=service_name, region=aws.region, endpoint=endpoint_url)
    return client


__all__ = ["build_boto3_client"]
