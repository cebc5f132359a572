from __future__ import annotations

import io

import pytest
from PIL import Image

from meterscan.ocr.base import EngineOptions, RawImage, RecognitionResult


class FakeSession:
    """Scripted OCR session: returns queued texts and records every call."""

    def __init__(self, factory: FakeEngineFactory) -> None:
        self._factory = factory

    def configure(self, options: EngineOptions) -> None:
        self._factory.configured.append(options)

    def recognize(self, image: Image.Image) -> RecognitionResult:
        self._factory.recognized.append(image.size)
        if not self._factory.script:
            raise AssertionError("unexpected recognize() call")
        item = self._factory.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return RecognitionResult(text=item, confidence=80.0)

    def terminate(self) -> None:
        self._factory.terminations += 1

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.terminate()


class FakeEngineFactory:
    name = "fake"

    def __init__(self, *script: str | Exception, available: bool = True) -> None:
        self.script = list(script)
        self.available = available
        self.sessions_opened = 0
        self.terminations = 0
        self.configured: list[EngineOptions] = []
        self.recognized: list[tuple[int, int]] = []

    def is_available(self) -> bool:
        return self.available

    def open_session(self) -> FakeSession:
        self.sessions_opened += 1
        return FakeSession(self)


@pytest.fixture()
def fake_engine():
    return FakeEngineFactory


def _encode(img: Image.Image, fmt: str = "PNG", **save_kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


@pytest.fixture()
def encode_image():
    return _encode


@pytest.fixture()
def meter_photo() -> RawImage:
    """A small synthetic meter face: dark digit window with light bars on white."""

    img = Image.new("RGB", (40, 20), (250, 250, 250))
    for x in range(5, 35):
        for y in range(5, 15):
            img.putpixel((x, y), (20, 20, 20) if x % 6 else (200, 200, 200))
    return RawImage(data=_encode(img), name="meter")
