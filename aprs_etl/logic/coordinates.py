"""APRS degrees-minutes coordinate conversion."""

from __future__ import annotations

import re

LATITUDE_DEGREE_DIGITS = 2
LONGITUDE_DEGREE_DIGITS = 3

_NEGATIVE_HEMISPHERES = {"S", "W"}
_HEMISPHERES = {
    LATITUDE_DEGREE_DIGITS: {"N", "S"},
    LONGITUDE_DEGREE_DIGITS: {"E", "W"},
}
_LIMITS = {
    LATITUDE_DEGREE_DIGITS: 90.0,
    LONGITUDE_DEGREE_DIGITS: 180.0,
}


class InvalidCoordinateFormat(ValueError):
    """Raised when degrees-minutes text cannot be decoded."""


def decode_coordinate(text: str, hemisphere: str, degree_digits: int) -> float:
    """Convert ``DDMM.mm`` / ``DDDMM.mm`` text plus a hemisphere letter to decimal degrees.

    ``degree_digits`` is 2 for latitude and 3 for longitude. Minutes always
    carry exactly two digits before the decimal point.
    """
    if degree_digits not in _HEMISPHERES:
        raise InvalidCoordinateFormat(f"Unsupported degree width: {degree_digits}")

    pattern = rf"([0-9]{{{degree_digits}}})([0-9]{{2}}\.[0-9]+)"
    match = re.fullmatch(pattern, text or "")
    if not match:
        raise InvalidCoordinateFormat(f"Bad coordinate text: {text!r}")

    if hemisphere not in _HEMISPHERES[degree_digits]:
        raise InvalidCoordinateFormat(f"Bad hemisphere {hemisphere!r} for {text!r}")

    degrees = int(match.group(1))
    minutes = float(match.group(2))
    if minutes >= 60:
        raise InvalidCoordinateFormat(f"Minutes out of range in {text!r}")

    value = degrees + minutes / 60
    if value > _LIMITS[degree_digits]:
        raise InvalidCoordinateFormat(f"Coordinate out of range: {text!r}{hemisphere}")

    if hemisphere in _NEGATIVE_HEMISPHERES:
        value = -value
    return value


def decode_latitude(text: str, hemisphere: str) -> float:
    return decode_coordinate(text, hemisphere, LATITUDE_DEGREE_DIGITS)


def decode_longitude(text: str, hemisphere: str) -> float:
    return decode_coordinate(text, hemisphere, LONGITUDE_DEGREE_DIGITS)


def encode_coordinate(value: float, degree_digits: int) -> tuple[str, str]:
    """Format decimal degrees as APRS text; returns (text, hemisphere)."""
    if degree_digits not in _HEMISPHERES:
        raise InvalidCoordinateFormat(f"Unsupported degree width: {degree_digits}")
    if abs(value) > _LIMITS[degree_digits]:
        raise InvalidCoordinateFormat(f"Coordinate out of range: {value}")

    if degree_digits == LATITUDE_DEGREE_DIGITS:
        hemisphere = "S" if value < 0 else "N"
    else:
        hemisphere = "W" if value < 0 else "E"

    magnitude = abs(value)
    degrees = int(magnitude)
    minutes = round((magnitude - degrees) * 60, 2)
    if minutes >= 60:
        degrees += 1
        minutes = 0.0
    return f"{degrees:0{degree_digits}d}{minutes:05.2f}", hemisphere


def format_position(latitude: float, longitude: float) -> str:
    """Render a decoded position back in APRS ``DDMM.mmN/DDDMM.mmW`` form."""
    lat_text, lat_hemi = encode_coordinate(latitude, LATITUDE_DEGREE_DIGITS)
    lon_text, lon_hemi = encode_coordinate(longitude, LONGITUDE_DEGREE_DIGITS)
    return f"{lat_text}{lat_hemi}/{lon_text}{lon_hemi}"


__all__ = [
    "LATITUDE_DEGREE_DIGITS",
    "LONGITUDE_DEGREE_DIGITS",
    "InvalidCoordinateFormat",
    "decode_coordinate",
    "decode_latitude",
    "decode_longitude",
    "encode_coordinate",
    "format_position",
]
