"""
One render job, start to finish.

download -> render -> transcode -> upload -> cleanup, with a progress
report at every stage boundary. Any stage failure ends the job in FAILED
with a single 0% report; the working directory is still removed.
"""

import logging
from dataclasses import dataclass, field

from .assets import sync_assets
from .config import PipelineConfig
from .errors import CommandError, DeleteError, DuplicateJobError, PipelineError
from .models import JobPaths, JobRequest, JobState, ProgressStatus, ProgressUpdate
from .progress import ProgressReporter
from .publisher import publish_result
from .runner import render_arguments, run_command, transcode_arguments
from .s3 import get_s3_client
from .workspace import acquire_job_lock, cleanup_workdir, prepare_workdir

logger = logging.getLogger(__name__)

# Percent reported on entering each state.
CHECKPOINTS = {
    JobState.DOWNLOADING: 4,
    JobState.RENDERING: 32,
    JobState.TRANSCODING: 58,
    JobState.UPLOADING: 76,
    JobState.CLEANING_UP: 94,
    JobState.COMPLETED: 100,
    JobState.FAILED: 0,
}

ERROR_DETAIL_LIMIT = 4000


@dataclass
class PipelineOutcome:
    job: JobRequest
    state: JobState = JobState.RECEIVED
    history: list = field(default_factory=lambda: [JobState.RECEIVED])
    reports: list = field(default_factory=list)  # [(ProgressUpdate, delivered)]
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.COMPLETED


class RenderPipeline:
    def __init__(self, config: PipelineConfig, *, s3_client=None, reporter: ProgressReporter | None = None):
        self.config = config
        self.s3 = s3_client if s3_client is not None else get_s3_client(config)
        self.reporter = reporter if reporter is not None else ProgressReporter(config)

    # -----------------------------------------------------
    # Stages
    # -----------------------------------------------------
    def download(self, paths: JobPaths):
        prepare_workdir(paths.local_work_dir)
        return sync_assets(self.s3, self.config, paths)

    def render(self, paths: JobPaths):
        return run_command(
            self.config.render_binary,
            render_arguments(self.config, paths),
            timeout=self.config.subprocess_timeout,
        )

    def transcode(self, paths: JobPaths):
        return run_command(
            self.config.ffmpeg_binary,
            transcode_arguments(paths),
            timeout=self.config.subprocess_timeout,
        )

    def upload(self, paths: JobPaths):
        return publish_result(self.s3, self.config, paths.final_output_path, paths.output_key)

    def cleanup(self, paths: JobPaths) -> bool:
        try:
            cleanup_workdir(paths.local_work_dir)
        except DeleteError as exc:
            # The job already has its outcome; a leftover directory is only logged.
            logger.error("%s", exc)
            return False
        return True

    # -----------------------------------------------------
    # Driver
    # -----------------------------------------------------
    def run(self, job: JobRequest) -> PipelineOutcome:
        outcome = PipelineOutcome(job=job)
        logger.info("Job %s (video %s) received", job.user_video_id, job.video_id)

        try:
            paths = JobPaths.derive(job, self.config)
            lock = acquire_job_lock(paths.lock_path)
        except DuplicateJobError as exc:
            # The directory belongs to the job already running; leave it alone.
            return self._fail(outcome, exc)
        except Exception as exc:
            logger.exception("Job %s could not be prepared", job.user_video_id)
            return self._fail(outcome, exc)

        with lock:
            return self._run_stages(outcome, paths)

    def _run_stages(self, outcome: PipelineOutcome, paths: JobPaths) -> PipelineOutcome:
        stages = (
            (JobState.DOWNLOADING, self.download),
            (JobState.RENDERING, self.render),
            (JobState.TRANSCODING, self.transcode),
            (JobState.UPLOADING, self.upload),
        )
        try:
            for state, stage in stages:
                self._enter(outcome, state)
                stage(paths)
        except Exception as exc:
            self._log_failure(outcome, exc)
            self.cleanup(paths)
            return self._fail(outcome, exc)

        self._enter(outcome, JobState.CLEANING_UP)
        self.cleanup(paths)
        self._enter(outcome, JobState.COMPLETED)
        logger.info("Job %s completed: s3://%s/%s", outcome.job.user_video_id, self.config.s3_bucket, paths.output_key)
        return outcome

    def _enter(self, outcome: PipelineOutcome, state: JobState) -> None:
        outcome.state = state
        outcome.history.append(state)
        logger.info("Job %s: %s", outcome.job.user_video_id, state.value)
        status = ProgressStatus.COMPLETED if state is JobState.COMPLETED else ProgressStatus.RENDERING
        self._report(outcome, ProgressUpdate(CHECKPOINTS[state], outcome.job.user_video_id, status))

    def _fail(self, outcome: PipelineOutcome, exc: BaseException) -> PipelineOutcome:
        outcome.error = exc
        outcome.state = JobState.FAILED
        outcome.history.append(JobState.FAILED)
        logger.error("Job %s failed: %s", outcome.job.user_video_id, exc)
        self._report(outcome, ProgressUpdate(
            CHECKPOINTS[JobState.FAILED],
            outcome.job.user_video_id,
            ProgressStatus.FAILED,
            error=str(exc)[:ERROR_DETAIL_LIMIT],
        ))
        return outcome

    def _report(self, outcome: PipelineOutcome, update: ProgressUpdate) -> None:
        try:
            delivered = self.reporter.report(outcome.job.progress_endpoint, update)
        except Exception:
            logger.exception("Progress report %s%% for job %s raised", update.percent, outcome.job.user_video_id)
            delivered = False
        outcome.reports.append((update, delivered))

    @staticmethod
    def _log_failure(outcome: PipelineOutcome, exc: BaseException) -> None:
        stage = outcome.state.value
        if isinstance(exc, CommandError) and exc.log:
            logger.error("Stage %s failed: %s\n%s", stage, exc, exc.log_text)
        elif isinstance(exc, PipelineError):
            logger.error("Stage %s failed: %s", stage, exc)
        else:
            logger.exception("Stage %s failed unexpectedly", stage)
