"""EXIF extraction with Pillow."""

from __future__ import annotations

from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from PIL import ExifTags, Image, UnidentifiedImageError

from wikiportraits.domain.model.images import GpsCoordinate
from wikiportraits.domain.ports.files import ExifData

if TYPE_CHECKING:
    from collections.abc import Mapping

    from wikiportraits.domain.model.images import SourceFile

log = getLogger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def parse_exif_datetime(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        text = value.strip().rstrip("\x00")
        return datetime.strptime(text, EXIF_DATETIME_FORMAT)  # noqa: DTZ007
    except ValueError:
        return None


def _degrees(value: Any) -> float | None:
    try:
        degrees, minutes, seconds = (float(part) for part in value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return degrees + minutes / 60 + seconds / 3600


def gps_coordinate(gps: Mapping[int, Any]) -> GpsCoordinate | None:
    """Decimal coordinate from a GPS IFD, ``None`` when either axis is missing."""

    latitude = _degrees(gps.get(ExifTags.GPS.GPSLatitude))
    longitude = _degrees(gps.get(ExifTags.GPS.GPSLongitude))
    if latitude is None or longitude is None:
        return None
    if gps.get(ExifTags.GPS.GPSLatitudeRef) == "S":
        latitude = -latitude
    if gps.get(ExifTags.GPS.GPSLongitudeRef) == "W":
        longitude = -longitude
    return GpsCoordinate(latitude=round(latitude, 6), longitude=round(longitude, 6))


class PillowExifReader:
    """Read capture time, GPS position and camera from image files."""

    def read(self, file: SourceFile) -> ExifData | None:
        if file.path is None:
            return None
        try:
            with Image.open(file.path) as image:
                return self._extract(image.getexif())
        except (OSError, UnidentifiedImageError):
            log.warning("Could not open %s for EXIF", file.name, exc_info=True)
            return None

    def _extract(self, exif: Image.Exif) -> ExifData | None:
        if not exif:
            return None
        details = exif.get_ifd(ExifTags.IFD.Exif)
        captured_at = parse_exif_datetime(
            details.get(ExifTags.Base.DateTimeOriginal)
        ) or parse_exif_datetime(exif.get(ExifTags.Base.DateTime))

        make = str(exif.get(ExifTags.Base.Make, "")).strip("\x00 ")
        model = str(exif.get(ExifTags.Base.Model, "")).strip("\x00 ")
        camera = " ".join(part for part in (make, model) if part) or None

        return ExifData(
            captured_at=captured_at,
            gps=gps_coordinate(exif.get_ifd(ExifTags.IFD.GPSInfo)),
            camera=camera,
        )


__all__ = ["PillowExifReader", "gps_coordinate", "parse_exif_datetime"]
