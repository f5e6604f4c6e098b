"""
Module: detection.bridge

Purpose:
    Adapter between an external vision model and the crop region type.
    Sends a rendered page to an OpenAI-compatible chat endpoint, validates
    the JSON answer against a strict schema and clamps the suggested
    region before anyone adopts it.

    Service failures and "no label visible" both surface as None (not
    found). They are told apart only in the log.

Key Classes:
    - LabelDetector: Async detection client
    - LabelDetectionResponse: Validated response schema

Key Functions:
    - parse_detection_response(): Raw payload -> clamped region or None
    - encode_for_detection(): Image -> JPEG data URL

Dependencies:
    - openai: AsyncOpenAI chat completions
    - pydantic: Response validation
    - PIL: JPEG encoding

Used By:
    - session.state: LabelSession.auto_detect()
    - cli: detect command
"""

from __future__ import annotations

import asyncio
import base64
import logging
import math
from io import BytesIO
from typing import Any, Optional, Union

from openai import AsyncOpenAI, OpenAIError
from PIL import Image
from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_validator,
)

from label_toolkit.core.errors import DetectionUnavailable, InvalidRegion
from label_toolkit.core.models import CropRegion, clamp_region
from label_toolkit.render.buffer import PixelRaster

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_S = 30.0
DETECTION_JPEG_QUALITY = 80

DETECTION_PROMPT = (
    "Identify the bounding box of the shipping label on this document. "
    "Return the coordinates as percentages (0-100) of the image width and height. "
    "For example {x: 10, y: 10, width: 80, height: 40}. "
    "Ensure the crop includes all barcodes and text necessary for delivery. "
    'Answer with a JSON object: {"label_found": boolean, '
    '"crop_area": {"x": number, "y": number, "width": number, "height": number}, '
    '"explanation": string}.'
)

Number = Union[StrictInt, StrictFloat]


class CropAreaPayload(BaseModel):
    """Suggested crop area in percent, as returned by the model."""

    model_config = ConfigDict(extra="ignore")

    x: Number
    y: Number
    width: Number
    height: Number

    @field_validator("x", "y", "width", "height")
    @classmethod
    def _finite(cls, value: float) -> float:
        try:
            value = float(value)
        except OverflowError as e:
            raise ValueError("coordinate is too large") from e
        if not math.isfinite(value):
            raise ValueError("coordinate must be finite")
        return value


class LabelDetectionResponse(BaseModel):
    """Expected response: label_found and crop_area required."""

    model_config = ConfigDict(extra="ignore")

    label_found: StrictBool
    crop_area: CropAreaPayload
    explanation: Optional[str] = None


def parse_detection_response(payload: Any) -> Optional[CropRegion]:
    """
    Turn an untrusted response payload into a clamped region.

    Args:
        payload: Decoded JSON object or raw JSON text

    Returns:
        Clamped CropRegion, or None for negatives and invalid payloads

    Example:
        >>> parse_detection_response(
        ...     {"label_found": True, "crop_area": {"x": -5, "y": 0, "width": 50, "height": 50}}
        ... )
        CropRegion(x=0.0, y=0.0, width=50, height=50)
    """
    try:
        if isinstance(payload, (str, bytes)):
            response = LabelDetectionResponse.model_validate_json(payload)
        else:
            response = LabelDetectionResponse.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Detection response failed validation: {e.error_count()} errors")
        return None

    if not response.label_found:
        logger.info(f"Model found no label: {response.explanation or 'no explanation'}")
        return None

    area = response.crop_area
    try:
        region = clamp_region(CropRegion(area.x, area.y, area.width, area.height))
    except InvalidRegion as e:
        logger.warning(f"Discarding suggested region: {e}")
        return None

    logger.info(f"Model suggested region {region}")
    return region


def encode_for_detection(image: Image.Image, quality: int = DETECTION_JPEG_QUALITY) -> str:
    """Encode an image as a base64 JPEG data URL."""
    img_bytes = BytesIO()
    image.convert("RGB").save(img_bytes, format="JPEG", quality=quality)
    encoded = base64.b64encode(img_bytes.getvalue()).decode("utf-8")
    return f"data:image/jpeg;base64,{encoded}"


class LabelDetector:
    """
    Suggests a crop region for the label on a page.

    Example:
        >>> detector = LabelDetector(AsyncOpenAI(base_url=..., api_key=...))
        >>> region = await detector.suggest(raster)
        >>> region is None  # not found or service unavailable
        False
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = DEFAULT_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        prompt: str = DETECTION_PROMPT,
    ) -> None:
        self.client = client
        self.model = model
        self.timeout_s = timeout_s
        self.prompt = prompt

    async def suggest(self, image: Union[PixelRaster, Image.Image]) -> Optional[CropRegion]:
        """
        Ask the model where the label is.

        Returns:
            Clamped CropRegion, or None when no label was found or the
            service could not be used. Never raises for service errors.
        """
        if isinstance(image, PixelRaster):
            image = image.to_image()

        try:
            content = await self._request(encode_for_detection(image))
        except DetectionUnavailable as e:
            logger.warning(f"Detection unavailable: {e}")
            return None

        return parse_detection_response(content)

    async def _request(self, data_url: str) -> str:
        """
        Send one detection request.

        Raises:
            DetectionUnavailable: On API errors, timeouts or empty answers
        """
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": data_url}},
                    {"type": "text", "text": self.prompt},
                ],
            }
        ]
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise DetectionUnavailable(f"No answer within {self.timeout_s:.0f}s") from e
        except OpenAIError as e:
            raise DetectionUnavailable(f"API error: {e}") from e

        if not response.choices:
            raise DetectionUnavailable("Response has no choices")
        content = response.choices[0].message.content
        if not content:
            raise DetectionUnavailable("Response is empty")
        return content
