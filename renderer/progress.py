import json
import logging

import requests

from .config import PipelineConfig
from .models import ProgressUpdate

logger = logging.getLogger(__name__)


class ProgressReporter:
    """
    Best-effort delivery of progress updates to the caller's endpoint.

    ``report`` never raises: any delivery problem is logged and reported
    back as ``False`` so the pipeline can carry on.
    """

    def __init__(self, config: PipelineConfig, session: requests.Session | None = None):
        self.timeout = config.progress_timeout
        self.include_error = config.report_error_detail
        self._session = session or requests.Session()

    def report(self, endpoint: str, update: ProgressUpdate) -> bool:
        payload = update.to_payload()
        if not self.include_error:
            payload.pop("error", None)
        body = json.dumps(payload).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }
        try:
            resp = self._session.put(endpoint, data=body, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning(
                "Progress %s%% (%s) for %s not delivered: %s",
                payload["progress"], payload["status"], update.job_id, exc,
            )
            return False
        logger.debug("Progress %s%% (%s) delivered for %s", payload["progress"], payload["status"], update.job_id)
        return True

    def close(self) -> None:
        self._session.close()
