from datetime import datetime, timezone

import pytest

from kartoffel.rtctime import (
    SECONDS_FROM_1970_TO_2000,
    DateTime,
    RegisterBus,
    bcd_to_dec,
    date_to_days,
    dec_to_bcd,
    is_leap_year,
)


def test_leap_years_match_calendar():
    for offset in range(0, 200):
        year = 2000 + offset
        expected = year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)
        assert is_leap_year(offset) == expected


def test_date_to_days_starts_at_zero():
    assert date_to_days(2000, 1, 1) == 0
    assert date_to_days(0, 1, 1) == 0


def test_date_to_days_is_consecutive():
    first = date_to_days(2024, 2, 28)
    assert date_to_days(2024, 2, 29) == first + 1
    assert date_to_days(2024, 3, 1) == first + 2


def test_bcd_pinned_values():
    assert dec_to_bcd(59) == 0x59
    assert bcd_to_dec(0x23) == 23


def test_bcd_round_trip():
    for value in range(100):
        assert bcd_to_dec(dec_to_bcd(value)) == value


def test_bcd_rejects_out_of_range():
    with pytest.raises(ValueError):
        dec_to_bcd(256)
    with pytest.raises(ValueError):
        bcd_to_dec(-1)


def test_epoch_of_2000():
    moment = DateTime.from_unix(SECONDS_FROM_1970_TO_2000)
    assert (moment.year, moment.month, moment.day) == (2000, 1, 1)
    assert (moment.hour, moment.minute, moment.second) == (0, 0, 0)
    assert moment.unixtime() == SECONDS_FROM_1970_TO_2000


@pytest.mark.parametrize(
    "timestamp",
    [SECONDS_FROM_1970_TO_2000 + 59, 1_000_000_000, 1_330_473_600, 1_709_251_199, 1_735_900_000],
)
def test_from_unix_matches_calendar(timestamp):
    moment = DateTime.from_unix(timestamp)
    reference = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    assert (moment.year, moment.month, moment.day) == (
        reference.year,
        reference.month,
        reference.day,
    )
    assert (moment.hour, moment.minute, moment.second) == (
        reference.hour,
        reference.minute,
        reference.second,
    )
    assert moment.unixtime() == timestamp


def test_short_year_is_offset_from_2000():
    moment = DateTime(24, 5, 6, 7, 8, 9)
    assert moment.year == 2024
    assert moment.year_offset == 24
    assert moment == DateTime(2024, 5, 6, 7, 8, 9)


def test_from_strings_parses_date_and_time():
    moment = DateTime.from_strings("Jan  3 2025", "12:34:56")
    assert moment == DateTime(2025, 1, 3, 12, 34, 56)


def test_from_strings_rejects_unknown_month():
    with pytest.raises(ValueError):
        DateTime.from_strings("Foo 3 2025", "12:34:56")


def test_invalid_month_rejected():
    with pytest.raises(ValueError):
        DateTime(2024, 13, 1)


def test_bus_read_write():
    bus = RegisterBus()
    bus.write(0x04, 0x15, 0x08, 0x24)
    assert bus.read(0x04, 3) == bytes([0x15, 0x08, 0x24])
    assert bus.read(0x00, 1) == b"\x00"


def test_bus_wraps_around():
    bus = RegisterBus([1, 2, 3])
    assert bus.read(2, 2) == bytes([3, 1])
    bus.write(2, 9, 8)
    assert bus.registers == bytearray([8, 2, 9])


def test_bus_rejects_bad_input():
    bus = RegisterBus()
    with pytest.raises(IndexError):
        bus.read(0x40)
    with pytest.raises(ValueError):
        bus.write(0x00, 300)