import enum
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .config import PipelineConfig

TEMPLATE_PROJECT_NAME = "render.aepx"
RENDERED_INTERMEDIATE_NAME = "result.mov"
FINAL_OUTPUT_NAME = "demo_hd.mp4"


class JobState(str, enum.Enum):
    RECEIVED = "received"
    DOWNLOADING = "downloading"
    RENDERING = "rendering"
    TRANSCODING = "transcoding"
    UPLOADING = "uploading"
    CLEANING_UP = "cleaning_up"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressStatus(str, enum.Enum):
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobRequest:
    video_id: str
    user_video_id: str
    progress_endpoint: str

    def as_dict(self) -> dict:
        return {
            "video_id": self.video_id,
            "user_video_id": self.user_video_id,
            "progress_endpoint": self.progress_endpoint,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JobRequest":
        return cls(
            video_id=str(data["video_id"]),
            user_video_id=str(data["user_video_id"]),
            progress_endpoint=str(data["progress_endpoint"]),
        )


@dataclass(frozen=True)
class JobPaths:
    """Per-job locations, derived once from the request and never mutated."""
    remote_asset_prefix: str
    local_work_dir: Path
    lock_path: Path
    template_project_path: Path
    rendered_intermediate_path: Path
    final_output_path: Path
    output_key: str

    @classmethod
    def derive(cls, job: JobRequest, config: PipelineConfig) -> "JobPaths":
        # Trailing slash keeps "U1" from matching "U10".
        prefix = f"v/{job.video_id}/u/{job.user_video_id}/"
        work_dir = Path(config.templates_root).resolve() / job.user_video_id
        return cls(
            remote_asset_prefix=prefix,
            local_work_dir=work_dir,
            lock_path=work_dir.with_name(f"{job.user_video_id}.lock"),
            template_project_path=work_dir / TEMPLATE_PROJECT_NAME,
            rendered_intermediate_path=work_dir / RENDERED_INTERMEDIATE_NAME,
            final_output_path=work_dir / FINAL_OUTPUT_NAME,
            output_key=prefix + FINAL_OUTPUT_NAME,
        )


@dataclass(frozen=True)
class AssetDescriptor:
    remote_key: str
    local_destination_dir: Path
    size: int = 0

    @property
    def local_path(self) -> Path:
        return self.local_destination_dir / PurePosixPath(self.remote_key).name


@dataclass
class SubprocessResult:
    exit_code: int
    combined_log: list = field(default_factory=list)

    @property
    def log_text(self) -> str:
        return "".join(self.combined_log)


@dataclass(frozen=True)
class ProgressUpdate:
    percent: int
    job_id: str
    status: ProgressStatus
    error: str | None = None

    def __post_init__(self):
        if not 0 <= int(self.percent) <= 100:
            raise ValueError(f"progress must be within 0..100, got {self.percent}")

    def to_payload(self) -> dict:
        payload = {
            "progress": int(self.percent),
            "user_video_id": self.job_id,
            "status": ProgressStatus(self.status).value,
        }
        if self.error:
            payload["error"] = self.error
        return payload
