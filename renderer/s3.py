import mimetypes

import boto3
from botocore.config import Config as BotoConfig

from .config import PipelineConfig


def get_s3_client(config: PipelineConfig):
    """
    SDK client for server-side listing, download and upload.

    Credentials fall back to the standard AWS chain (env vars, profile,
    instance role) when none are configured explicitly.
    """
    session = boto3.session.Session(
        aws_access_key_id=config.s3_access_key,
        aws_secret_access_key=config.s3_secret_key,
        region_name=config.s3_region,
    )
    return session.client(
        "s3",
        endpoint_url=config.s3_endpoint_url,  # e.g. http://127.0.0.1:9000 for MinIO
        config=BotoConfig(
            # MinIO needs path-style; AWS resolves its own
            s3={"addressing_style": "path" if config.s3_endpoint_url else "auto"},
            signature_version="s3v4",
            connect_timeout=config.s3_connect_timeout,
            read_timeout=config.s3_read_timeout,
            retries={"max_attempts": config.s3_max_attempts, "mode": "standard"},
        ),
    )


def iter_objects(s3, bucket: str, prefix: str):
    """
    Yield every object summary (``Key``, ``Size``, ...) under ``prefix``,
    following continuation tokens.
    """
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        yield from page.get("Contents", [])


def guess_content_type(key: str) -> str:
    mime, _ = mimetypes.guess_type(key)
    return mime or "application/octet-stream"
