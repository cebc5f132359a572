from meterscan.ocr.api import extract_meter_digits, extract_meter_digits_from_path
from meterscan.ocr.base import (
    EngineOptions,
    EnhancedRaster,
    ExtractionOutcome,
    ExtractionStatus,
    ParseMode,
    RawImage,
    RecognitionPass,
    RecognitionResult,
)
from meterscan.ocr.config import ExtractionConfig, PreprocessConfig
from meterscan.ocr.preprocess import preprocess
from meterscan.ocr.reader import MeterReader
from meterscan.ocr.scoring import best_digits

__all__ = [
    "EngineOptions",
    "EnhancedRaster",
    "ExtractionConfig",
    "ExtractionOutcome",
    "ExtractionStatus",
    "MeterReader",
    "ParseMode",
    "PreprocessConfig",
    "RawImage",
    "RecognitionPass",
    "RecognitionResult",
    "best_digits",
    "extract_meter_digits",
    "extract_meter_digits_from_path",
    "preprocess",
]
