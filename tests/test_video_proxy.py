import asyncio
import re

import pytest

from conftest import JPEG_B64, PNG_B64, VIDEO_URL, data_url
from morphreel.config import Settings
from morphreel.services.errors import AuthError, UpstreamShapeError, ValidationError
from morphreel.services.providers.image_to_video import VideoMode
from morphreel.services.upstream import UpstreamCaller
from morphreel.services.video_proxy import VideoProxy, select_mode

CREDENTIAL = "fal-key-id:fal-key-secret"


def _generate(settings, upstream, images, credential=CREDENTIAL, **kwargs):
    async def go():
        async with upstream.client() as client:
            proxy = VideoProxy(settings, UpstreamCaller(client))
            return await proxy.generate(images, credential, **kwargs)
    return asyncio.run(go())


def test_single_image_selects_animation_mode(settings, upstream):
    upstream.respond(200, {"video": {"url": VIDEO_URL}})
    result = _generate(settings, upstream, [data_url(JPEG_B64)])

    assert result.mode is VideoMode.SINGLE
    assert re.match(r"^https?://\S+$", result.url)
    request = upstream.calls[0]
    assert str(request.url) == settings.VIDEO_SINGLE_API_URL
    assert request.headers["Authorization"] == f"Key {CREDENTIAL}"
    body = upstream.last_json()
    assert body["image_url"] == data_url(JPEG_B64)
    assert "start_image_url" not in body


def test_two_images_keep_start_end_order(settings, upstream):
    upstream.respond(200, {"video_url": VIDEO_URL})
    result = _generate(settings, upstream, [
        {"data": data_url(PNG_B64, "image/png")},
        {"data": JPEG_B64, "type": "image/jpeg"},
    ])

    assert result.mode is VideoMode.TRANSITION
    assert result.url == VIDEO_URL
    assert str(upstream.calls[0].url) == settings.VIDEO_TRANSITION_API_URL
    body = upstream.last_json()
    assert body["start_image_url"] == data_url(PNG_B64, "image/png")
    assert body["end_image_url"] == data_url(JPEG_B64)


def test_defaults_are_applied(settings, upstream):
    upstream.respond(200, {"url": VIDEO_URL})
    _generate(settings, upstream, [JPEG_B64, JPEG_B64])
    body = upstream.last_json()
    assert body["prompt"] == settings.VIDEO_DEFAULT_PROMPT
    assert body["duration"] == 5
    assert body["aspect_ratio"] == "16:9"
    assert "negative_prompt" not in body


def test_caller_parameters_are_forwarded(settings, upstream):
    upstream.respond(200, {"url": VIDEO_URL})
    _generate(settings, upstream, [JPEG_B64, JPEG_B64], prompt="Slow dissolve",
              negative_prompt="blurry", duration_seconds=8, aspect_ratio="9:16")
    body = upstream.last_json()
    assert body["prompt"] == "Slow dissolve"
    assert body["negative_prompt"] == "blurry"
    assert body["duration"] == 8
    assert body["aspect_ratio"] == "9:16"


def test_sequence_uses_first_and_last_when_allowed(upstream):
    settings = Settings(_env_file=None, VIDEO_MAX_IMAGES=4)
    upstream.respond(200, {"url": VIDEO_URL})
    third = data_url(PNG_B64, "image/png")
    _generate(settings, upstream, [JPEG_B64, JPEG_B64, third])
    body = upstream.last_json()
    assert body["start_image_url"] == data_url(JPEG_B64)
    assert body["end_image_url"] == third


@pytest.mark.parametrize("images", [[], None])
def test_no_images_is_validation_error(settings, upstream, images):
    with pytest.raises(ValidationError, match="images"):
        _generate(settings, upstream, images)
    assert upstream.calls == []


def test_too_many_images(settings, upstream):
    with pytest.raises(ValidationError, match="At most 2 images"):
        _generate(settings, upstream, [JPEG_B64] * 3)
    assert upstream.calls == []


def test_missing_credential_never_calls_upstream(settings, upstream):
    with pytest.raises(ValidationError, match="credential"):
        _generate(settings, upstream, [JPEG_B64], credential=None)
    assert upstream.calls == []


def test_malformed_base64_names_the_image(settings, upstream):
    with pytest.raises(ValidationError) as exc:
        _generate(settings, upstream, [data_url(JPEG_B64), "data:image/jpeg;base64,###!!!"])
    assert "images[1]" in exc.value.message
    assert upstream.calls == []


def test_images_must_be_a_list(settings, upstream):
    with pytest.raises(ValidationError, match="list"):
        _generate(settings, upstream, JPEG_B64)


@pytest.mark.parametrize("kwargs, match", [
    ({"duration_seconds": -1}, "durationSeconds"),
    ({"duration_seconds": "soon"}, "durationSeconds"),
    ({"duration_seconds": True}, "durationSeconds"),
    ({"duration_seconds": "inf"}, "durationSeconds"),
    ({"duration_seconds": "nan"}, "durationSeconds"),
    ({"duration_seconds": "1e400"}, "durationSeconds"),
    ({"duration_seconds": float("inf")}, "durationSeconds"),
    ({"aspect_ratio": "wide"}, "aspectRatio"),
    ({"prompt": 12}, "prompt"),
])
def test_bad_parameters(settings, upstream, kwargs, match):
    with pytest.raises(ValidationError, match=match):
        _generate(settings, upstream, [JPEG_B64], **kwargs)
    assert upstream.calls == []


def test_prompt_can_be_made_mandatory(upstream):
    settings = Settings(_env_file=None, VIDEO_REQUIRE_PROMPT=True)
    with pytest.raises(ValidationError, match="prompt"):
        _generate(settings, upstream, [JPEG_B64])


def test_401_surfaces_invalid_credential(settings, upstream):
    upstream.respond(401, {"detail": "Invalid key"})
    with pytest.raises(AuthError) as exc:
        _generate(settings, upstream, [JPEG_B64, JPEG_B64])
    assert exc.value.message == "invalid credential"


def test_missing_url_is_shape_error(settings, upstream):
    upstream.respond(200, {"status": "COMPLETED"})
    with pytest.raises(UpstreamShapeError):
        _generate(settings, upstream, [JPEG_B64])


def test_non_url_result_is_shape_error(settings, upstream):
    upstream.respond(200, {"url": "not a url"})
    with pytest.raises(UpstreamShapeError):
        _generate(settings, upstream, [JPEG_B64])


def test_select_mode():
    assert select_mode(1, 2) is VideoMode.SINGLE
    assert select_mode(2, 2) is VideoMode.TRANSITION
    with pytest.raises(ValidationError):
        select_mode(0, 2)
    with pytest.raises(ValidationError):
        select_mode(3, 2)
