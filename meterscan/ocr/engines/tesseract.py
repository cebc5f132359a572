from __future__ import annotations

import logging

import pytesseract
from PIL import Image

from meterscan.ocr.base import (
    EngineError,
    EngineOptions,
    EngineUnavailable,
    ParseMode,
    RecognitionResult,
)

logger = logging.getLogger(__name__)

# Tesseract page segmentation modes.
_PSM = {
    ParseMode.LINE: 7,  # single text line
    ParseMode.BLOCK: 6,  # single uniform block of text
}


def build_tesseract_config(options: EngineOptions) -> str:
    cfg = f"--oem 3 --psm {_PSM[options.parse_mode]} --dpi {options.dpi_hint} "
    if options.character_whitelist:
        cfg += f"-c tessedit_char_whitelist={options.character_whitelist} "
    if options.numeric_mode:
        # Disable dictionaries to reduce false negatives for digit-only regions.
        cfg += "-c classify_bln_numeric_mode=1 -c load_system_dawg=0 -c load_freq_dawg=0 "
    cfg += f"-c preserve_interword_spaces={1 if options.interword_spacing else 0}"
    return cfg


def _text_and_confidence(data: dict) -> tuple[str, float]:
    lines: dict[tuple[int, int, int, int], list[str]] = {}
    confidences: list[float] = []
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        key = (
            int(data["page_num"][i]),
            int(data["block_num"][i]),
            int(data["par_num"][i]),
            int(data["line_num"][i]),
        )
        lines.setdefault(key, []).append(word)
        conf = float(data["conf"][i])
        if conf >= 0:
            confidences.append(conf)
    text = "\n".join(" ".join(words) for words in lines.values())
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return text, confidence


class TesseractSession:
    """A recognition session backed by the local ``tesseract`` binary.

    Tesseract itself is stateless per invocation, so the session only carries the
    configured options; terminating it makes further use an error.
    """

    def __init__(self, *, lang: str = "eng") -> None:
        self._lang = lang
        self._options = EngineOptions()
        self._terminated = False

    @property
    def options(self) -> EngineOptions:
        return self._options

    def configure(self, options: EngineOptions) -> None:
        self._ensure_open()
        self._options = options

    def recognize(self, image: Image.Image) -> RecognitionResult:
        self._ensure_open()
        cfg = build_tesseract_config(self._options)
        logger.debug("tesseract lang=%s config=%r", self._lang, cfg)
        try:
            data = pytesseract.image_to_data(
                image,
                lang=self._lang,
                config=cfg,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as err:
            raise EngineUnavailable("tesseract binary not found") from err
        except pytesseract.TesseractError as err:
            raise EngineError(f"tesseract failed: {err}") from err
        text, confidence = _text_and_confidence(data)
        return RecognitionResult(text=text, confidence=confidence)

    def terminate(self) -> None:
        self._terminated = True

    def _ensure_open(self) -> None:
        if self._terminated:
            raise EngineError("OCR session already terminated")

    def __enter__(self) -> TesseractSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.terminate()


class TesseractEngineFactory:
    name = "tesseract"

    def __init__(self, *, lang: str = "eng", tesseract_cmd: str | None = None) -> None:
        self.lang = lang
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def is_available(self) -> bool:
        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError:
            logger.warning("tesseract is not available on this system")
            return False
        return True

    def open_session(self) -> TesseractSession:
        return TesseractSession(lang=self.lang)
