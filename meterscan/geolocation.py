from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from PIL import ExifTags

from meterscan.ocr.base import MeterScanError, RawImage

logger = logging.getLogger(__name__)

# GPS IFD tag ids (EXIF 2.3, section 4.6.6).
_GPS_LATITUDE_REF = 1
_GPS_LATITUDE = 2
_GPS_LONGITUDE_REF = 3
_GPS_LONGITUDE = 4


class GeolocationErrorCode(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"


class GeolocationError(MeterScanError):
    def __init__(self, code: GeolocationErrorCode, message: str = "") -> None:
        super().__init__(message or code.value)
        self.code = code


@dataclass(frozen=True, slots=True)
class Position:
    latitude: float
    longitude: float
    accuracy: float | None = None


@dataclass(frozen=True, slots=True)
class LocationResult:
    position: Position | None = None
    error: GeolocationErrorCode | None = None

    @property
    def ok(self) -> bool:
        return self.position is not None


class PositionProvider(Protocol):
    def get_current_position(self) -> Position: ...


def _validate(latitude: float, longitude: float) -> None:
    if not -90.0 <= latitude <= 90.0:
        raise ValueError(f"latitude out of range: {latitude!r}")
    if not -180.0 <= longitude <= 180.0:
        raise ValueError(f"longitude out of range: {longitude!r}")


class FixedPositionProvider:
    """Returns a position the caller already knows (e.g. typed in on the command line)."""

    def __init__(self, latitude: float, longitude: float, accuracy: float | None = None):
        _validate(latitude, longitude)
        self._position = Position(latitude, longitude, accuracy)

    def get_current_position(self) -> Position:
        return self._position


def _to_degrees(value) -> float:
    """Convert an EXIF degrees/minutes/seconds triple (or a bare number) to degrees."""
    if isinstance(value, (tuple, list)):
        parts = [float(v) for v in value] + [0.0, 0.0, 0.0]
        deg, minutes, seconds = parts[:3]
        return deg + minutes / 60.0 + seconds / 3600.0
    return float(value)


def _ref(value) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return str(value or "").strip("\x00 ").upper()


class ExifPositionProvider:
    """Reads the capture position from the GPS block of the photo's EXIF data.

    Photos forwarded through chat apps or taken with location tagging off carry no GPS
    block; that is reported as POSITION_UNAVAILABLE.
    """

    def __init__(self, image: RawImage) -> None:
        self.image = image

    def get_current_position(self) -> Position:
        try:
            with self.image.open() as img:
                gps = img.getexif().get_ifd(ExifTags.IFD.GPSInfo)
        except (MeterScanError, OSError, SyntaxError, ValueError) as err:
            raise GeolocationError(
                GeolocationErrorCode.UNKNOWN, f"Cannot read EXIF from {self.image.name}: {err}"
            ) from err

        if _GPS_LATITUDE not in gps or _GPS_LONGITUDE not in gps:
            raise GeolocationError(
                GeolocationErrorCode.POSITION_UNAVAILABLE,
                f"No GPS data in {self.image.name}",
            )

        try:
            lat = _to_degrees(gps[_GPS_LATITUDE])
            lon = _to_degrees(gps[_GPS_LONGITUDE])
        except (TypeError, ValueError, ZeroDivisionError) as err:
            raise GeolocationError(
                GeolocationErrorCode.UNKNOWN, f"Malformed GPS data in {self.image.name}"
            ) from err
        if _ref(gps.get(_GPS_LATITUDE_REF)) == "S":
            lat = -lat
        if _ref(gps.get(_GPS_LONGITUDE_REF)) == "W":
            lon = -lon

        try:
            _validate(lat, lon)
        except ValueError as err:
            raise GeolocationError(GeolocationErrorCode.UNKNOWN, str(err)) from err
        return Position(latitude=lat, longitude=lon)


def locate(provider: PositionProvider | None) -> LocationResult:
    """Ask ``provider`` for a position without letting failures escape."""
    if provider is None:
        return LocationResult(error=GeolocationErrorCode.POSITION_UNAVAILABLE)
    try:
        position = provider.get_current_position()
    except GeolocationError as err:
        logger.info("Location unavailable: %s (%s)", err.code.value, err)
        return LocationResult(error=err.code)
    except Exception:
        logger.exception("Position provider failed")
        return LocationResult(error=GeolocationErrorCode.UNKNOWN)
    logger.info("Location: %.6f, %.6f", position.latitude, position.longitude)
    return LocationResult(position=position)
