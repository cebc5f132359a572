from __future__ import annotations

import logging
from pathlib import Path

from meterscan.ocr.base import ExtractionOutcome, OcrEngineFactory, ProgressCallback, RawImage
from meterscan.ocr.config import ExtractionConfig
from meterscan.ocr.preprocess import preprocess
from meterscan.ocr.reader import MeterReader

logger = logging.getLogger(__name__)


def extract_meter_digits(
    image: RawImage | bytes,
    *,
    config: ExtractionConfig | None = None,
    engine_factory: OcrEngineFactory | None = None,
    progress: ProgressCallback | None = None,
) -> ExtractionOutcome:
    raw = image if isinstance(image, RawImage) else RawImage(data=image)
    reader = MeterReader(engine_factory, config=config)
    return reader.extract(raw, progress=progress)


def dump_enhanced_raster(
    image: RawImage, debug_dir: str | Path, *, config: ExtractionConfig | None = None
) -> Path | None:
    """Save the preprocessed raster next to other debug artifacts.

    Returns the written path, or None when the image cannot be preprocessed.
    """

    cfg = config or ExtractionConfig()
    out_dir = Path(debug_dir)
    try:
        raster = preprocess(image, cfg.preprocess)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / f"{image.name}_enhanced.png"
        raster.image.save(out_path)
    except Exception:
        # Debug output must never affect the main reading path.
        logger.exception("Could not write debug raster for %s", image.name)
        return None
    return out_path


def extract_meter_digits_from_path(
    path: str | Path,
    *,
    debug_dir: str | Path | None = None,
    config: ExtractionConfig | None = None,
    engine_factory: OcrEngineFactory | None = None,
) -> ExtractionOutcome:
    raw = RawImage.from_path(path)
    if debug_dir is not None:
        dump_enhanced_raster(raw, debug_dir, config=config)
    return extract_meter_digits(raw, config=config, engine_factory=engine_factory)
