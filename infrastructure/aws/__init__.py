"""AWS client helpers."""
from .clients import build_boto3_client

__all__ = ["build_boto3_client"]
