import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path, PurePosixPath

from botocore.exceptions import BotoCoreError, ClientError

from .config import PipelineConfig
from .errors import FetchError, ListError
from .models import AssetDescriptor, JobPaths
from .s3 import iter_objects

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def _is_tracked(obj: dict, ignored: frozenset) -> bool:
    """Zero-size keys are folder markers; ignored names ship with the template."""
    if int(obj.get("Size", 0)) <= 0:
        return False
    return PurePosixPath(obj["Key"]).name not in ignored


def _local_dir_for(key: str, paths: JobPaths) -> Path:
    rel = PurePosixPath(key[len(paths.remote_asset_prefix):])
    if rel.is_absolute() or ".." in rel.parts:
        raise FetchError(key, "key escapes the job working directory")
    return paths.local_work_dir.joinpath(*rel.parent.parts)


def list_assets(s3, config: PipelineConfig, paths: JobPaths) -> list[AssetDescriptor]:
    """Enumerate the objects the job needs locally, in listing order."""
    try:
        objects = list(iter_objects(s3, config.s3_bucket, paths.remote_asset_prefix))
    except (ClientError, BotoCoreError) as exc:
        raise ListError(paths.remote_asset_prefix, exc) from exc

    assets = []
    for obj in objects:
        if not _is_tracked(obj, config.ignored_asset_names):
            logger.debug("Skipping %s", obj["Key"])
            continue
        assets.append(AssetDescriptor(
            remote_key=obj["Key"],
            local_destination_dir=_local_dir_for(obj["Key"], paths),
            size=int(obj["Size"]),
        ))
    return assets


def fetch_asset(s3, bucket: str, asset: AssetDescriptor) -> Path:
    """Stream one object into its destination directory."""
    dest = asset.local_path
    try:
        os.makedirs(asset.local_destination_dir, exist_ok=True)
        resp = s3.get_object(Bucket=bucket, Key=asset.remote_key)
        body = resp["Body"]
        try:
            with open(dest, "wb") as f:
                for chunk in body.iter_chunks(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
        finally:
            body.close()
    except (ClientError, BotoCoreError, OSError) as exc:
        raise FetchError(asset.remote_key, exc) from exc
    return dest


def sync_assets(s3, config: PipelineConfig, paths: JobPaths) -> list[AssetDescriptor]:
    """
    Download every tracked object under the job's remote prefix into its
    working directory.

    All fetches run concurrently and are all allowed to finish; if any of
    them failed, the first failure in listing order is raised afterwards.
    A half-populated working directory is left for cleanup to remove.
    """
    assets = list_assets(s3, config, paths)
    logger.info("Fetching %d asset(s) from %s", len(assets), paths.remote_asset_prefix)
    if not assets:
        return assets

    workers = min(config.asset_fetch_workers, len(assets))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="asset-fetch") as pool:
        futures = [pool.submit(fetch_asset, s3, config.s3_bucket, asset) for asset in assets]
        wait(futures)

    errors = []
    for asset, future in zip(assets, futures):
        exc = future.exception()
        if exc is None:
            continue
        if not isinstance(exc, FetchError):
            exc = FetchError(asset.remote_key, exc)
        logger.error("%s", exc)
        errors.append(exc)
    if errors:
        raise errors[0]
    return assets
