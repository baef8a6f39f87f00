import io
import threading
import time
from dataclasses import replace

import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from conftest import FakeS3
from renderer.assets import list_assets, sync_assets
from renderer.errors import FetchError, ListError


def _body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


def test_sync_downloads_project_and_skips_ignored_name(s3_client, config, paths):
    project = b"x" * 120
    with Stubber(s3_client) as stub:
        stub.add_response(
            "list_objects_v2",
            {
                "IsTruncated": False,
                "Contents": [
                    {"Key": "v/V1/u/U1/render.aepx", "Size": 120},
                    {"Key": "v/V1/u/U1/demo_hd.mp4", "Size": 999},
                ],
            },
        )
        stub.add_response(
            "get_object",
            {"Body": _body(project), "ContentLength": 120},
            {"Bucket": "test-bucket", "Key": "v/V1/u/U1/render.aepx"},
        )
        synced = sync_assets(s3_client, config, paths)
        stub.assert_no_pending_responses()

    assert [a.remote_key for a in synced] == ["v/V1/u/U1/render.aepx"]
    assert paths.template_project_path.read_bytes() == project
    assert not paths.final_output_path.exists()


def test_list_error_when_listing_fails(s3_client, config, paths):
    with Stubber(s3_client) as stub:
        stub.add_client_error("list_objects_v2", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(ListError) as info:
            sync_assets(s3_client, config, paths)

    assert info.value.prefix == "v/V1/u/U1/"


def test_zero_size_and_ignored_objects_are_never_fetched(config, paths):
    s3 = FakeS3({
        "v/V1/u/U1/": b"",
        "v/V1/u/U1/footage/": b"",
        "v/V1/u/U1/render_old.aepx": b"old",
        "v/V1/u/U1/footage/demo_hd.mp4": b"demo",
        "v/V1/u/U1/footage/clip.mov": b"clip",
        "v/V1/u/U1/render.aepx": b"project",
    })

    sync_assets(s3, config, paths)

    assert sorted(s3.fetched) == ["v/V1/u/U1/footage/clip.mov", "v/V1/u/U1/render.aepx"]
    assert (paths.local_work_dir / "footage" / "clip.mov").read_bytes() == b"clip"
    assert paths.template_project_path.read_bytes() == b"project"


def test_prefix_does_not_leak_into_sibling_user_video(config, paths):
    s3 = FakeS3({
        "v/V1/u/U1/render.aepx": b"mine",
        "v/V1/u/U10/render.aepx": b"someone else",
    })

    assets = list_assets(s3, config, paths)

    assert [a.remote_key for a in assets] == ["v/V1/u/U1/render.aepx"]


def test_nested_keys_are_rooted_under_work_dir(config, paths):
    s3 = FakeS3({"v/V1/u/U1/images/logo/logo.png": b"png"})

    (asset,) = list_assets(s3, config, paths)

    assert asset.local_destination_dir == paths.local_work_dir / "images" / "logo"
    assert asset.local_path == paths.local_work_dir / "images" / "logo" / "logo.png"


def test_key_escaping_work_dir_is_rejected(config, paths):
    s3 = FakeS3({"v/V1/u/U1/../../U2/render.aepx": b"nope"})

    with pytest.raises(FetchError):
        list_assets(s3, config, paths)


def test_no_assets_is_success(config, paths):
    assert sync_assets(FakeS3(), config, paths) == []


def test_failed_fetch_waits_for_the_rest_before_failing(config, paths):
    slow_done = threading.Event()

    class SlowS3(FakeS3):
        def get_object(self, Bucket, Key):
            if Key.endswith("slow.mov"):
                time.sleep(0.2)
                resp = super().get_object(Bucket, Key)
                slow_done.set()
                return resp
            return super().get_object(Bucket, Key)

    s3 = SlowS3(
        {
            "v/V1/u/U1/slow.mov": b"slow",
            "v/V1/u/U1/broken.mov": b"never",
        },
        failing={"v/V1/u/U1/broken.mov"},
    )
    cfg = replace(config, asset_fetch_workers=4)

    with pytest.raises(FetchError) as info:
        sync_assets(s3, cfg, paths)

    assert info.value.key == "v/V1/u/U1/broken.mov"
    assert slow_done.is_set()
    assert (paths.local_work_dir / "slow.mov").read_bytes() == b"slow"


def test_first_failure_in_listing_order_is_raised(config, paths):
    s3 = FakeS3(
        {
            "v/V1/u/U1/a.mov": b"a",
            "v/V1/u/U1/b.mov": b"b",
            "v/V1/u/U1/c.mov": b"c",
        },
        failing={"v/V1/u/U1/b.mov", "v/V1/u/U1/c.mov"},
    )

    with pytest.raises(FetchError) as info:
        sync_assets(s3, config, paths)

    assert info.value.key == "v/V1/u/U1/b.mov"
    assert sorted(s3.fetched) == ["v/V1/u/U1/a.mov", "v/V1/u/U1/b.mov", "v/V1/u/U1/c.mov"]
