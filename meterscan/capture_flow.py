from __future__ import annotations

import logging
from dataclasses import dataclass

from meterscan.geolocation import (
    GeolocationErrorCode,
    LocationResult,
    PositionProvider,
    locate,
)
from meterscan.ocr.base import ExtractionOutcome, ExtractionStatus, ProgressCallback, RawImage
from meterscan.ocr.reader import MeterReader

logger = logging.getLogger(__name__)

LOCATION_MESSAGES = {
    None: "Current location retrieved",
    GeolocationErrorCode.PERMISSION_DENIED: "Permission to access the location was denied",
    GeolocationErrorCode.POSITION_UNAVAILABLE: "The location cannot be determined right now",
    GeolocationErrorCode.TIMEOUT: "Timed out waiting for the current location",
    GeolocationErrorCode.UNKNOWN: "An error occurred while retrieving the location",
}

OCR_MESSAGES = {
    ExtractionStatus.SUCCESS: "Reading complete",
    ExtractionStatus.NO_MATCH: "No clear digits found, please retake the photo",
    ExtractionStatus.ENGINE_ERROR: "An error occurred while reading the meter",
    ExtractionStatus.UNSUPPORTED_ENVIRONMENT: "Meter reading is not supported on this system",
}


def describe_location(result: LocationResult) -> str:
    return LOCATION_MESSAGES[None if result.ok else result.error]


def describe_outcome(outcome: ExtractionOutcome) -> str:
    return OCR_MESSAGES[outcome.status]


@dataclass(frozen=True, slots=True)
class CaptureReport:
    image_name: str
    location: LocationResult
    outcome: ExtractionOutcome

    @property
    def latitude(self) -> float | None:
        return self.location.position.latitude if self.location.position else None

    @property
    def longitude(self) -> float | None:
        return self.location.position.longitude if self.location.position else None

    @property
    def location_message(self) -> str:
        return describe_location(self.location)

    @property
    def ocr_message(self) -> str:
        return describe_outcome(self.outcome)

    def as_dict(self) -> dict:
        return {
            "image": self.image_name,
            "status": self.outcome.status.value,
            "digits": self.outcome.digits,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "location_status": self.location.error.value if self.location.error else "OK",
            "location_message": self.location_message,
            "message": self.ocr_message,
        }


def process_capture(
    image: RawImage,
    *,
    position_provider: PositionProvider | None,
    reader: MeterReader,
    progress: ProgressCallback | None = None,
) -> CaptureReport:
    """Geotag a meter photo, then read its digits.

    Location runs first and its failure never blocks the reading.
    """

    logger.info("Processing capture %s", image.name)
    location = locate(position_provider)
    outcome = reader.extract(image, progress=progress)
    return CaptureReport(image_name=image.name, location=location, outcome=outcome)
