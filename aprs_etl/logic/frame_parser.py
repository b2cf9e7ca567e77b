"""Parser for APRS-IS position report lines.

Only the two plain-text position forms are understood: ``!`` and ``=``
followed by ``DDMM.mmN/DDDMM.mmW`` and a symbol code. Every other packet type
is rejected with a reason code rather than an exception, so one bad line
never interrupts a batch.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from aprs_etl.logic.coordinates import InvalidCoordinateFormat, decode_latitude, decode_longitude

MALFORMED_FRAME = "MalformedFrame"
MISSING_IDENTIFIER = "MissingIdentifier"
NO_POSITION_DATA = "NoPositionData"
INVALID_COORDINATE_FORMAT = "InvalidCoordinateFormat"

FEET_TO_METERS = 0.3048

_IDENTIFIER_RE = re.compile(r"[A-Z0-9-]+")
_POSITION_RE = re.compile(
    r"[!=](?P<lat>[0-9]{4}\.[0-9]{2})(?P<lat_hemi>[NS])"
    r"(?P<table>[\\/])"
    r"(?P<lon>[0-9]{5}\.[0-9]{2})(?P<lon_hemi>[EW])"
    r"(?P<symbol>.?)(?P<rest>.*)$",
    re.DOTALL,
)
_COURSE_SPEED_RE = re.compile(r"^(?P<course>[0-9]{3})/(?P<speed>[0-9]{3})")
_ALTITUDE_RE = re.compile(r"/A=(?P<feet>-?[0-9]{5,6})")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class StationReport:
    """Position report decoded from a single APRS line."""

    identifier: str
    latitude: float
    longitude: float
    raw: str
    comment: str | None = None
    symbol: str | None = None
    symbol_table: str | None = None
    course: float | None = None
    speed: float | None = None  # knots
    altitude: float | None = None  # meters
    timestamp: float | None = None


@dataclass(frozen=True)
class ParseFailure:
    """Reason a line did not produce a StationReport."""

    reason: str
    raw: str
    detail: str = ""


def normalize_identifier(value: str) -> str:
    """Strip all whitespace from a callsign."""
    return _WHITESPACE_RE.sub("", value)


def parse_frame(raw_line: str) -> StationReport | ParseFailure:
    """Parse one APRS-IS text line into a StationReport or a ParseFailure."""
    parts = raw_line.split(":", 1)
    if len(parts) < 2:
        return ParseFailure(MALFORMED_FRAME, raw_line, "no ':' separating header and payload")
    header, payload = parts

    identifier_match = _IDENTIFIER_RE.match(header)
    if not identifier_match:
        return ParseFailure(MISSING_IDENTIFIER, raw_line, f"header {header!r}")
    identifier = normalize_identifier(identifier_match.group(0))

    position = _POSITION_RE.search(payload)
    if not position:
        return ParseFailure(NO_POSITION_DATA, raw_line)

    try:
        latitude = decode_latitude(position.group("lat"), position.group("lat_hemi"))
        longitude = decode_longitude(position.group("lon"), position.group("lon_hemi"))
    except InvalidCoordinateFormat as exc:
        return ParseFailure(INVALID_COORDINATE_FORMAT, raw_line, str(exc))

    comment, course, speed, altitude = _read_extensions(position.group("rest"))

    return StationReport(
        identifier=identifier,
        latitude=latitude,
        longitude=longitude,
        raw=raw_line,
        comment=comment,
        symbol=position.group("symbol") or None,
        symbol_table=position.group("table"),
        course=course,
        speed=speed,
        altitude=altitude,
    )


def _read_extensions(
    text: str,
) -> tuple[str | None, float | None, float | None, float | None]:
    """Read course/speed and altitude from the comment text, which is kept as sent."""
    course = None
    speed = None
    altitude = None

    course_speed = _COURSE_SPEED_RE.match(text)
    if course_speed:
        course_value = int(course_speed.group("course"))
        if 0 < course_value <= 360:
            course = float(course_value % 360)
        speed = float(int(course_speed.group("speed")))

    altitude_match = _ALTITUDE_RE.search(text)
    if altitude_match:
        altitude = int(altitude_match.group("feet")) * FEET_TO_METERS

    comment = text.strip()
    return (comment or None), course, speed, altitude


__all__ = [
    "MALFORMED_FRAME",
    "MISSING_IDENTIFIER",
    "NO_POSITION_DATA",
    "INVALID_COORDINATE_FORMAT",
    "StationReport",
    "ParseFailure",
    "normalize_identifier",
    "parse_frame",
]
