import logging
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError

from .config import PipelineConfig
from .errors import PutError, ReadError
from .s3 import guess_content_type

logger = logging.getLogger(__name__)


def publish_result(s3, config: PipelineConfig, local_path, key: str) -> str:
    """
    Upload the finished video as a public object and return its key.

    The artifact is read whole before anything is sent, so a missing file
    fails with :class:`ReadError` without touching the bucket.
    """
    try:
        data = Path(local_path).read_bytes()
    except OSError as exc:
        raise ReadError(local_path, exc) from exc

    try:
        s3.put_object(
            Bucket=config.s3_bucket,
            Key=key,
            Body=data,
            ACL="public-read",
            ContentType=guess_content_type(key),
        )
    except (ClientError, BotoCoreError) as exc:
        raise PutError(key, exc) from exc

    logger.info("Uploaded %d bytes to s3://%s/%s", len(data), config.s3_bucket, key)
    return key
