from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol, Union

from PIL import Image, UnidentifiedImageError


class MeterScanError(Exception):
    """Base class for errors raised by meterscan."""


class ImageDecodeError(MeterScanError):
    """The image payload could not be decoded."""


class RenderingUnavailable(MeterScanError):
    """No drawing surface could be obtained for the decoded image."""


class EngineError(MeterScanError):
    """The OCR engine failed while recognizing text."""


class EngineUnavailable(EngineError):
    """The OCR engine cannot run in this environment."""


@dataclass(frozen=True, slots=True)
class RawImage:
    """Encoded image bytes as supplied by the caller."""

    data: bytes
    name: str = "image"

    @classmethod
    def from_path(cls, path: str | Path) -> RawImage:
        p = Path(path)
        return cls(data=p.read_bytes(), name=p.stem)

    def open(self) -> Image.Image:
        try:
            return Image.open(io.BytesIO(self.data))
        except UnidentifiedImageError as err:
            raise ImageDecodeError(f"Cannot decode image {self.name!r}") from err

    @property
    def size(self) -> tuple[int, int]:
        with self.open() as img:
            return img.size


@dataclass(frozen=True, slots=True)
class EnhancedRaster:
    """Binarized, upscaled copy of a RawImage used only as an OCR aid."""

    image: Image.Image
    scale_factor: int

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


class ParseMode(str, Enum):
    LINE = "line"
    BLOCK = "block"


@dataclass(frozen=True, slots=True)
class EngineOptions:
    character_whitelist: str = "0123456789"
    numeric_mode: bool = True
    parse_mode: ParseMode = ParseMode.LINE
    dpi_hint: int = 300
    interword_spacing: bool = False


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    text: str
    confidence: float = 0.0


@dataclass(frozen=True, slots=True)
class RecognitionPass:
    mode: ParseMode
    input_image: Union[RawImage, EnhancedRaster]
    result_text: str
    confidence: float
    digits: str


class ExtractionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    NO_MATCH = "NO_MATCH"
    ENGINE_ERROR = "ENGINE_ERROR"
    UNSUPPORTED_ENVIRONMENT = "UNSUPPORTED_ENVIRONMENT"


@dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    status: ExtractionStatus
    digits: str = ""
    passes: tuple[RecognitionPass, ...] = field(default=())
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ExtractionStatus.SUCCESS


ProgressCallback = Callable[[str, float], None]


class OcrSession(Protocol):
    """One recognition worker, valid until terminated.

    Sessions are context managers; leaving the ``with`` block terminates them.
    """

    def configure(self, options: EngineOptions) -> None: ...

    def recognize(self, image: Image.Image) -> RecognitionResult: ...

    def terminate(self) -> None: ...

    def __enter__(self) -> OcrSession: ...

    def __exit__(self, *exc_info: object) -> None: ...


class OcrEngineFactory(Protocol):
    name: str

    def is_available(self) -> bool: ...

    def open_session(self) -> OcrSession: ...
