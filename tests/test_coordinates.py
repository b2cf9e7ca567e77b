from __future__ import annotations

import pytest

from aprs_etl.logic.coordinates import (
    InvalidCoordinateFormat,
    decode_coordinate,
    decode_latitude,
    decode_longitude,
    encode_coordinate,
    format_position,
)


def test_decode_latitude_north() -> None:
    assert decode_latitude("4903.50", "N") == pytest.approx(49.058333, abs=1e-6)


def test_decode_latitude_south_is_negative() -> None:
    assert decode_latitude("4903.50", "S") == pytest.approx(-49.058333, abs=1e-6)


def test_decode_longitude_west_is_negative() -> None:
    assert decode_longitude("07201.75", "W") == pytest.approx(-72.029167, abs=1e-6)


def test_decode_longitude_east() -> None:
    assert decode_longitude("17446.80", "E") == pytest.approx(174.78, abs=1e-6)


@pytest.mark.parametrize(
    ("text", "hemisphere", "digits"),
    [
        ("490.50", "N", 2),
        ("4903.50", "N", 3),
        ("abcd.ef", "N", 2),
        ("4960.00", "N", 2),
        ("4903.50", "E", 2),
        ("07201.75", "N", 3),
        ("9100.00", "N", 2),
        ("18100.00", "E", 3),
        ("", "N", 2),
    ],
)
def test_decode_rejects_bad_input(text: str, hemisphere: str, digits: int) -> None:
    with pytest.raises(InvalidCoordinateFormat):
        decode_coordinate(text, hemisphere, digits)


def test_decoded_minutes_match_original_text() -> None:
    for text in ("0000.00", "4903.50", "8959.99", "3312.07"):
        value = decode_latitude(text, "N")
        degrees = int(value)
        minutes = (value - degrees) * 60
        assert degrees == int(text[:2])
        assert minutes == pytest.approx(float(text[2:]), abs=1e-9)


def test_encode_coordinate_matches_aprs_text() -> None:
    assert encode_coordinate(-49.058333333, 2) == ("4903.50", "S")
    assert encode_coordinate(-72.029166667, 3) == ("07201.75", "W")
    assert encode_coordinate(0.0, 3) == ("00000.00", "E")


def test_encode_coordinate_out_of_range() -> None:
    with pytest.raises(InvalidCoordinateFormat):
        encode_coordinate(95.0, 2)


def test_decode_rejects_non_ascii_digits() -> None:
    with pytest.raises(InvalidCoordinateFormat):
        decode_latitude("٤٩٠٣.٥٠", "N")


def test_format_position_matches_frame_text() -> None:
    latitude = decode_latitude("4903.50", "S")
    longitude = decode_longitude("07201.75", "E")

    assert format_position(latitude, longitude) == "4903.50S/07201.75E"
