from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything a render job needs to know about its environment.

    Built once per job from Django settings and handed to every stage,
    so the pipeline code never reaches for ``django.conf.settings`` itself.
    """
    s3_bucket: str
    s3_region: str
    templates_root: Path
    render_binary: str
    ffmpeg_binary: str = "ffmpeg"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_connect_timeout: int = 10
    s3_read_timeout: int = 120
    s3_max_attempts: int = 3
    composition: str = "MAIN_COMP"
    output_module: str = "QuickTime"
    start_frame: int = 0
    ignored_asset_names: frozenset = frozenset({"demo_hd.mp4", "render_old.aepx"})
    asset_fetch_workers: int = 8
    subprocess_timeout: float | None = 45 * 60
    progress_timeout: float = 10
    report_error_detail: bool = False

    @classmethod
    def from_settings(cls, settings=None) -> "PipelineConfig":
        if settings is None:
            from django.conf import settings
        return cls(
            s3_bucket=settings.S3_BUCKET,
            s3_region=settings.S3_REGION,
            s3_endpoint_url=settings.S3_ENDPOINT_URL,
            s3_access_key=settings.S3_ACCESS_KEY,
            s3_secret_key=settings.S3_SECRET_KEY,
            s3_connect_timeout=settings.S3_CONNECT_TIMEOUT,
            s3_read_timeout=settings.S3_READ_TIMEOUT,
            s3_max_attempts=settings.S3_MAX_ATTEMPTS,
            templates_root=Path(settings.RENDER_TEMPLATES_ROOT).resolve(),
            render_binary=settings.AE_RENDER_PATH,
            ffmpeg_binary=settings.FFMPEG_PATH,
            composition=settings.RENDER_COMPOSITION,
            output_module=settings.RENDER_OUTPUT_MODULE,
            start_frame=settings.RENDER_START_FRAME,
            ignored_asset_names=frozenset(settings.ASSET_IGNORE_NAMES),
            asset_fetch_workers=max(1, settings.ASSET_FETCH_WORKERS),
            subprocess_timeout=settings.SUBPROCESS_TIMEOUT or None,
            progress_timeout=settings.PROGRESS_TIMEOUT,
            report_error_detail=settings.PROGRESS_ERROR_DETAIL,
        )
