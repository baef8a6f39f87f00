import logging

from celery import shared_task

from .config import PipelineConfig
from .models import JobRequest
from .orchestrator import RenderPipeline
from .progress import ProgressReporter

logger = logging.getLogger(__name__)


@shared_task(bind=True, ignore_result=True)
def render_video(self, job: dict) -> str:
    """
    Run one render job in the worker.

    The caller only learns the outcome through progress reports, so the
    returned state is informational (useful with eager execution).
    """
    request = JobRequest.from_dict(job)
    config = PipelineConfig.from_settings()
    reporter = ProgressReporter(config)
    try:
        outcome = RenderPipeline(config, reporter=reporter).run(request)
    finally:
        reporter.close()
    logger.info("Task %s for %s finished as %s", self.request.id, request.user_video_id, outcome.state.value)
    return outcome.state.value
