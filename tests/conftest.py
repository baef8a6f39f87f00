import io
import stat
from pathlib import Path

import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody

from renderer.config import PipelineConfig
from renderer.models import JobPaths, JobRequest
from renderer.s3 import get_s3_client


class FakeS3:
    """Just enough of the boto3 S3 client for the pipeline stages."""

    def __init__(self, objects=None, failing=()):
        self.objects = dict(objects or {})  # key -> bytes
        self.failing = set(failing)
        self.list_error = None
        self.fetched = []
        self.puts = []

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return self

    def paginate(self, Bucket, Prefix):
        if self.list_error is not None:
            raise self.list_error
        yield {
            "Contents": [
                {"Key": key, "Size": len(data)}
                for key, data in self.objects.items()
                if key.startswith(Prefix)
            ]
        }

    def get_object(self, Bucket, Key):
        self.fetched.append(Key)
        if Key in self.failing:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "GetObject")
        data = self.objects[Key]
        return {"Body": StreamingBody(io.BytesIO(data), len(data))}

    def put_object(self, **kwargs):
        self.puts.append(kwargs)
        return {}


class FakeReporter:
    def __init__(self, delivered=True):
        self.delivered = delivered
        self.updates = []

    def report(self, endpoint, update):
        self.updates.append((endpoint, update))
        return self.delivered


def write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def config(tmp_path):
    return PipelineConfig(
        s3_bucket="test-bucket",
        s3_region="us-east-2",
        s3_access_key="testing",
        s3_secret_key="testing",
        templates_root=tmp_path / "templates",
        render_binary=str(tmp_path / "bin" / "aerender"),
        ffmpeg_binary=str(tmp_path / "bin" / "ffmpeg"),
        asset_fetch_workers=1,
        subprocess_timeout=30,
        progress_timeout=1,
    )


@pytest.fixture
def job():
    return JobRequest(video_id="V1", user_video_id="U1", progress_endpoint="http://cb/uv")


@pytest.fixture
def paths(job, config):
    return JobPaths.derive(job, config)


@pytest.fixture
def s3_client(config):
    return get_s3_client(config)


@pytest.fixture
def bin_dir(tmp_path):
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture(autouse=True)
def _no_real_aws(monkeypatch):
    for name in ("AWS_PROFILE", "AWS_DEFAULT_PROFILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
