"""
Tests for detection.bridge

Test Coverage:
- parse_detection_response(): Schema validation and clamping
- LabelDetector.suggest(): Request shape, timeouts, API failures
"""
import asyncio
import base64
import json
import math
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError
from PIL import Image

from label_toolkit.core.models import CropRegion
from label_toolkit.detection.bridge import (
    LabelDetector,
    encode_for_detection,
    parse_detection_response,
)


def make_payload(label_found=True, **area):
    crop_area = {"x": 10, "y": 20, "width": 60, "height": 30}
    crop_area.update(area)
    return {"label_found": label_found, "crop_area": crop_area, "explanation": "label at top"}


def make_response(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(**create_kwargs):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    return client


# ─────────────────────────────────────────────────────────────────────────────
# Response parsing
# ─────────────────────────────────────────────────────────────────────────────


def test_parse_valid_payload():
    assert parse_detection_response(make_payload()) == CropRegion(10, 20, 60, 30)


def test_parse_json_text():
    region = parse_detection_response(json.dumps(make_payload(x=12.5)))

    assert region == CropRegion(12.5, 20, 60, 30)


def test_parse_clamps_negative_origin():
    region = parse_detection_response(make_payload(x=-5, y=0, width=50, height=50))

    assert region == CropRegion(0, 0, 50, 50)


def test_parse_clamps_oversized_area():
    region = parse_detection_response(make_payload(x=30, width=120))

    assert region.is_valid()
    assert region.width == 100


def test_parse_label_not_found():
    assert parse_detection_response(make_payload(label_found=False)) is None


def test_parse_missing_crop_area():
    assert parse_detection_response({"label_found": True}) is None


@pytest.mark.parametrize(
    "payload",
    [
        make_payload(x="10"),
        make_payload(x=True),
        make_payload(x=None),
        make_payload(label_found="true"),
        {"label_found": True, "crop_area": {"x": 1, "y": 2, "width": 3}},
        {"crop_area": {"x": 1, "y": 2, "width": 30, "height": 30}},
        "not json at all",
        '{"label_found": true, "crop_area": {"x": 1'
        + "0" * 400
        + ', "y": 0, "width": 10, "height": 10}}',
        make_payload(width=10 ** 400),
        [],
    ],
)
def test_parse_rejects_malformed(payload):
    assert parse_detection_response(payload) is None


def test_parse_rejects_non_finite():
    assert parse_detection_response(make_payload(width=math.inf)) is None
    assert parse_detection_response(make_payload(x=math.nan)) is None


def test_encode_for_detection_is_jpeg_data_url():
    url = encode_for_detection(Image.new("RGB", (20, 10), "white"))

    prefix = "data:image/jpeg;base64,"
    assert url.startswith(prefix)
    decoded = Image.open(BytesIO(base64.b64decode(url[len(prefix):])))
    assert decoded.format == "JPEG"
    assert decoded.size == (20, 10)


# ─────────────────────────────────────────────────────────────────────────────
# LabelDetector
# ─────────────────────────────────────────────────────────────────────────────


def test_suggest_sends_image_and_prompt():
    client = make_client(return_value=make_response(json.dumps(make_payload())))
    detector = LabelDetector(client, model="vision-test")

    region = asyncio.run(detector.suggest(Image.new("RGB", (40, 20), "white")))

    assert region == CropRegion(10, 20, 60, 30)
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "vision-test"
    assert kwargs["response_format"] == {"type": "json_object"}
    content = kwargs["messages"][0]["content"]
    assert content[0]["image_url"]["url"].startswith("data:image/jpeg;base64,")
    assert "shipping label" in content[1]["text"]


def test_suggest_accepts_raster(raster_factory):
    client = make_client(return_value=make_response(json.dumps(make_payload())))

    region = asyncio.run(LabelDetector(client).suggest(raster_factory(40, 20)))

    assert region == CropRegion(10, 20, 60, 30)


def test_suggest_not_found():
    client = make_client(return_value=make_response(json.dumps(make_payload(label_found=False))))

    assert asyncio.run(LabelDetector(client).suggest(Image.new("RGB", (4, 4)))) is None


def test_suggest_api_error_is_not_found():
    client = make_client(side_effect=OpenAIError("service unavailable"))

    assert asyncio.run(LabelDetector(client).suggest(Image.new("RGB", (4, 4)))) is None


def test_suggest_timeout_is_not_found():
    async def slow_create(**kwargs):
        await asyncio.sleep(5)
        return make_response(json.dumps(make_payload()))

    client = MagicMock()
    client.chat.completions.create = slow_create
    detector = LabelDetector(client, timeout_s=0.01)

    assert asyncio.run(detector.suggest(Image.new("RGB", (4, 4)))) is None


@pytest.mark.parametrize(
    "response",
    [
        SimpleNamespace(choices=[]),
        make_response(None),
        make_response(""),
        make_response("{not valid json"),
    ],
)
def test_suggest_unusable_response(response):
    client = make_client(return_value=response)

    assert asyncio.run(LabelDetector(client).suggest(Image.new("RGB", (4, 4)))) is None


def test_suggest_oversized_coordinate_is_not_found():
    content = (
        '{"label_found": true, "crop_area": {"x": 1'
        + "0" * 400
        + ', "y": 0, "width": 10, "height": 10}}'
    )
    client = make_client(return_value=make_response(content))

    assert asyncio.run(LabelDetector(client).suggest(Image.new("RGB", (4, 4)))) is None
