from urllib.parse import urlsplit

from rest_framework import serializers

from .models import JobRequest

# Identifiers become S3 key segments and a local directory name
IDENTIFIER_PATTERN = r"^[A-Za-z0-9_-]+$"


class RenderRequestSerializer(serializers.Serializer):
    video_id = serializers.RegexField(IDENTIFIER_PATTERN, max_length=128)
    user_video_id = serializers.RegexField(IDENTIFIER_PATTERN, max_length=128)
    api_end_point = serializers.CharField(max_length=2048)

    def validate_api_end_point(self, value):
        # Internal hosts without a TLD ("http://cb/uv") are fine here.
        parts = urlsplit(value)
        if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
            raise serializers.ValidationError("Progress endpoint must be an http(s) URL.")
        return value

    def to_job(self) -> JobRequest:
        data = self.validated_data
        return JobRequest(
            video_id=data["video_id"],
            user_video_id=data["user_video_id"],
            progress_endpoint=data["api_end_point"],
        )


class RenderAcceptedSerializer(serializers.Serializer):
    status = serializers.CharField()
    message = serializers.CharField()
