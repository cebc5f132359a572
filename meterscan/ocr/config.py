from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True, slots=True)
class PreprocessConfig:
    """Tuning knobs for the OCR preprocessing step.

    The defaults were picked empirically on phone photos of residential meters; they are
    starting points, not derived constants.
    """

    scale_factor: int = 2
    contrast_factor: float = 1.5
    threshold: int = 160

    def __post_init__(self) -> None:
        if not isinstance(self.scale_factor, int) or self.scale_factor < 1:
            raise ValueError(f"scale_factor must be an integer >= 1, got {self.scale_factor!r}")
        if self.contrast_factor <= 0:
            raise ValueError(f"contrast_factor must be positive, got {self.contrast_factor!r}")
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be within 0..255, got {self.threshold!r}")


@dataclass(frozen=True, slots=True)
class ExtractionConfig:
    """Configuration for meter digit extraction."""

    engine: str = "tesseract"
    lang: str = "eng"
    min_digits: int = 4
    dpi: int = 300
    whitelist: str = "0123456789"
    tesseract_cmd: str | None = None
    preprocess: PreprocessConfig = field(default_factory=PreprocessConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ExtractionConfig:
        env = os.environ if environ is None else environ

        def _int(key: str, default: int) -> int:
            raw = (env.get(key) or "").strip()
            return int(raw) if raw else default

        def _float(key: str, default: float) -> float:
            raw = (env.get(key) or "").strip()
            return float(raw) if raw else default

        pre = PreprocessConfig(
            scale_factor=_int("METERSCAN_SCALE_FACTOR", 2),
            contrast_factor=_float("METERSCAN_CONTRAST_FACTOR", 1.5),
            threshold=_int("METERSCAN_THRESHOLD", 160),
        )
        return cls(
            engine=(env.get("METERSCAN_ENGINE") or "tesseract").strip(),
            lang=(env.get("METERSCAN_LANG") or "eng").strip(),
            min_digits=_int("METERSCAN_MIN_DIGITS", 4),
            dpi=_int("METERSCAN_DPI", 300),
            tesseract_cmd=(env.get("METERSCAN_TESSERACT_CMD") or "").strip() or None,
            preprocess=pre,
        )
