import logging

from rest_framework import status, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .serializers import RenderAcceptedSerializer, RenderRequestSerializer
from .tasks import render_video

logger = logging.getLogger(__name__)


def _format_errors(errors: dict) -> str:
    parts = []
    for field, messages in errors.items():
        parts.append(f"{field}: {' '.join(str(m) for m in messages)}")
    return "; ".join(parts)


class RenderView(views.APIView):
    """
    Accepts a render request and queues it for the worker.

    Responds before any work is done; progress (and the final
    completed/failed status) is PUT to ``api_end_point`` as the job runs.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        ser = RenderRequestSerializer(data=request.query_params)
        if not ser.is_valid():
            return Response(
                {
                    "error": {
                        "code": status.HTTP_400_BAD_REQUEST,
                        "message": "Required (video_id, user_video_id, api_end_point) parameters "
                                   f"are missing or invalid. {_format_errors(ser.errors)}",
                    },
                    "data": {},
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        job = ser.to_job()
        render_video.delay(job.as_dict())  # queue background processing
        logger.info("Queued render for %s (video %s)", job.user_video_id, job.video_id)

        out = RenderAcceptedSerializer({
            "status": "progress",
            "message": "Video is rendering. Will send you update soon.",
        }).data
        return Response(out, status=status.HTTP_202_ACCEPTED)
