from __future__ import annotations

import pytest

from meterscan.ocr.config import ExtractionConfig, PreprocessConfig


def test_defaults():
    cfg = ExtractionConfig()
    assert cfg.engine == "tesseract"
    assert cfg.min_digits == 4
    assert cfg.dpi == 300
    assert cfg.preprocess == PreprocessConfig(scale_factor=2, contrast_factor=1.5, threshold=160)


def test_from_env_overrides():
    cfg = ExtractionConfig.from_env(
        {
            "METERSCAN_ENGINE": " tesseract ",
            "METERSCAN_LANG": "tha",
            "METERSCAN_SCALE_FACTOR": "3",
            "METERSCAN_CONTRAST_FACTOR": "2.0",
            "METERSCAN_THRESHOLD": "150",
            "METERSCAN_MIN_DIGITS": "5",
            "METERSCAN_DPI": "200",
            "METERSCAN_TESSERACT_CMD": "/usr/local/bin/tesseract",
        }
    )
    assert cfg.lang == "tha"
    assert cfg.min_digits == 5
    assert cfg.dpi == 200
    assert cfg.tesseract_cmd == "/usr/local/bin/tesseract"
    assert cfg.preprocess == PreprocessConfig(scale_factor=3, contrast_factor=2.0, threshold=150)


def test_from_env_blank_values_fall_back_to_defaults():
    cfg = ExtractionConfig.from_env({"METERSCAN_THRESHOLD": "", "METERSCAN_ENGINE": ""})
    assert cfg == ExtractionConfig()


def test_from_env_rejects_bad_values():
    with pytest.raises(ValueError):
        ExtractionConfig.from_env({"METERSCAN_SCALE_FACTOR": "0"})
    with pytest.raises(ValueError):
        ExtractionConfig.from_env({"METERSCAN_DPI": "lots"})
