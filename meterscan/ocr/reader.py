from __future__ import annotations

import logging
from dataclasses import replace

from PIL import Image

from meterscan.ocr.base import (
    EngineOptions,
    EnhancedRaster,
    ExtractionOutcome,
    ExtractionStatus,
    OcrEngineFactory,
    OcrSession,
    ParseMode,
    ProgressCallback,
    RawImage,
    RecognitionPass,
    RenderingUnavailable,
)
from meterscan.ocr.config import ExtractionConfig
from meterscan.ocr.factory import create_engine_factory
from meterscan.ocr.preprocess import preprocess
from meterscan.ocr.scoring import best_digits

logger = logging.getLogger(__name__)


class MeterReader:
    """Reads the digits of a meter photo with a two-pass OCR strategy.

    The primary pass reads the preprocessed raster as a single text line. When that
    yields fewer than ``min_digits`` digits, one fallback pass reads the untouched photo
    as a text block, and the longer of the two candidates wins (primary on ties).

    ``extract`` never raises for pipeline failures; they come back as an
    ``ExtractionOutcome`` status. Instances keep no per-call state, so one reader can
    serve concurrent calls.
    """

    def __init__(
        self,
        engine_factory: OcrEngineFactory | None = None,
        *,
        config: ExtractionConfig | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.config = config or ExtractionConfig()
        self.engine_factory = engine_factory or create_engine_factory(self.config)
        self._progress = progress

    def primary_options(self) -> EngineOptions:
        return EngineOptions(
            character_whitelist=self.config.whitelist,
            numeric_mode=True,
            parse_mode=ParseMode.LINE,
            dpi_hint=self.config.dpi,
            interword_spacing=False,
        )

    def fallback_options(self) -> EngineOptions:
        return replace(self.primary_options(), parse_mode=ParseMode.BLOCK)

    def extract(
        self, image: RawImage, *, progress: ProgressCallback | None = None
    ) -> ExtractionOutcome:
        notify = progress or self._progress

        try:
            available = self.engine_factory.is_available()
        except Exception as err:
            logger.exception("OCR engine %r availability check failed", self.engine_factory.name)
            return ExtractionOutcome(ExtractionStatus.UNSUPPORTED_ENVIRONMENT, error=str(err))
        if not available:
            logger.warning(
                "OCR engine %r unavailable, skipping %s", self.engine_factory.name, image.name
            )
            return ExtractionOutcome(
                ExtractionStatus.UNSUPPORTED_ENVIRONMENT,
                error=f"OCR engine {self.engine_factory.name!r} is not available",
            )

        self._notify(notify, "preprocessing", 0.0)
        try:
            raster = preprocess(image, self.config.preprocess)
        except RenderingUnavailable as err:
            logger.warning("Cannot render %s for OCR: %s", image.name, err)
            return ExtractionOutcome(ExtractionStatus.UNSUPPORTED_ENVIRONMENT, error=str(err))
        except Exception as err:
            logger.exception("Preprocessing failed for %s", image.name)
            return ExtractionOutcome(ExtractionStatus.ENGINE_ERROR, error=str(err))

        passes: list[RecognitionPass] = []
        try:
            with self.engine_factory.open_session() as session:
                self._notify(notify, "recognizing text", 0.25)
                session.configure(self.primary_options())
                primary = self._run_pass(session, ParseMode.LINE, raster, raster.image)
                passes.append(primary)
                digits = primary.digits

                if len(digits) < self.config.min_digits:
                    logger.info(
                        "Primary pass too short (%r), running fallback pass", digits
                    )
                    self._notify(notify, "fallback", 0.6)
                    session.configure(self.fallback_options())
                    with image.open() as original:
                        fallback = self._run_pass(session, ParseMode.BLOCK, image, original)
                    passes.append(fallback)
                    if len(fallback.digits) > len(digits):
                        digits = fallback.digits
        except Exception as err:
            logger.exception("OCR engine failed for %s", image.name)
            return ExtractionOutcome(
                ExtractionStatus.ENGINE_ERROR, passes=tuple(passes), error=str(err)
            )

        self._notify(notify, "done", 1.0)
        status = ExtractionStatus.SUCCESS if digits else ExtractionStatus.NO_MATCH
        logger.info(
            "Extraction finished for %s: status=%s digits=%r", image.name, status.value, digits
        )
        return ExtractionOutcome(status, digits=digits, passes=tuple(passes))

    def _run_pass(
        self,
        session: OcrSession,
        mode: ParseMode,
        source: RawImage | EnhancedRaster,
        pixels: Image.Image,
    ) -> RecognitionPass:
        result = session.recognize(pixels)
        digits = best_digits(result.text)
        logger.debug(
            "%s pass: raw=%r confidence=%.1f digits=%r",
            mode.value,
            result.text,
            result.confidence,
            digits,
        )
        return RecognitionPass(
            mode=mode,
            input_image=source,
            result_text=result.text,
            confidence=result.confidence,
            digits=digits,
        )

    @staticmethod
    def _notify(callback: ProgressCallback | None, stage: str, fraction: float) -> None:
        if callback is None:
            return
        try:
            callback(stage, fraction)
        except Exception:
            # Progress reporting must never affect the reading path.
            logger.exception("Progress callback failed at stage %r", stage)
