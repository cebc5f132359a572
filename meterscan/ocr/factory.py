from __future__ import annotations

from meterscan.ocr.base import OcrEngineFactory
from meterscan.ocr.config import ExtractionConfig
from meterscan.ocr.engines.tesseract import TesseractEngineFactory


def create_engine_factory(cfg: ExtractionConfig) -> OcrEngineFactory:
    key = (cfg.engine or "").strip().lower()
    if key in {"tesseract", "tess", "default"}:
        return TesseractEngineFactory(lang=cfg.lang, tesseract_cmd=cfg.tesseract_cmd)
    raise ValueError("Unknown OCR engine. Use one of: 'tesseract'")
