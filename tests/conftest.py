import base64
import io

import pytest
from PIL import Image

from inspection_ai.models.domain import AISettings

FRAME_HEIGHT = 1000

# Text box near the top edge: centroid y = 20 of a 1000 px frame
TOP_BBOX = {"points": [[10, 0], [200, 0], [200, 40], [10, 40]]}
MIDDLE_BBOX = [10, 480, 200, 520]


def make_image_bytes(width: int = 100, height: int = FRAME_HEIGHT, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(40, 40, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def frame_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def frame_base64(frame_bytes) -> str:
    return base64.b64encode(frame_bytes).decode("ascii")


@pytest.fixture
def ai_settings() -> AISettings:
    return AISettings(enabled=True, api_key="test-key")


def model_payload(texts=None, detections=None, distance=None) -> dict:
    """Model output in the shape the remote endpoint returns"""
    ocr = {"texts": texts or []}
    if distance is not None:
        ocr["extracted_data"] = {"distance": distance}
    return {"detections": detections or [], "ocr": ocr}
