"""Calendar arithmetic, BCD helpers and a register bus for the DS3231 clock."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

CLOCK_ADDRESS = 0x68
SECONDS_FROM_1970_TO_2000 = 946684800
REGISTER_COUNT = 0x13

DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _check_byte(value: int) -> int:
    if not 0 <= value <= 255:
        raise ValueError(f"byte value out of range: {value}")
    return value


def is_leap_year(year_offset: int) -> bool:
    """Tell whether the year ``2000 + year_offset`` is a leap year."""
    _check_byte(year_offset)
    if year_offset & 3:
        return False
    return bool(year_offset % 100) or year_offset % 400 == 0


def date_to_days(year: int, month: int, day: int) -> int:
    """Days since 2000-01-01; ``year`` may be full or an offset from 2000."""
    if year >= 2000:
        year -= 2000
    days = day + sum(DAYS_IN_MONTH[: month - 1])
    if month > 2 and is_leap_year(year):
        days += 1
    return days + 365 * year + (year + 3) // 4 - 1


def dec_to_bcd(value: int) -> int:
    """Convert a decimal number to binary coded decimal."""
    _check_byte(value)
    return (value // 10 * 16 + value % 10) & 0xFF


def bcd_to_dec(value: int) -> int:
    """Convert a binary coded decimal byte to a plain number."""
    _check_byte(value)
    return (value // 16 * 10 + value % 16) & 0xFF


@dataclass(frozen=True)
class DateTime:
    """A date and time without time zone, DST or leap second handling.

    Years below 2000 are taken as offsets from 2000.
    """

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    def __post_init__(self) -> None:
        if self.year < 2000:
            object.__setattr__(self, "year", self.year + 2000)
        _check_byte(self.year - 2000)
        if not 1 <= self.month <= 12:
            raise ValueError(f"month out of range: {self.month}")
        for value in (self.day, self.hour, self.minute, self.second):
            _check_byte(value)

    @property
    def year_offset(self) -> int:
        return self.year - 2000

    @classmethod
    def from_unix(cls, timestamp: int) -> "DateTime":
        """Build a DateTime from seconds since 1970-01-01."""
        t = (timestamp - SECONDS_FROM_1970_TO_2000) & 0xFFFFFFFF
        t, second = divmod(t, 60)
        t, minute = divmod(t, 60)
        days, hour = divmod(t, 24)

        year_offset = 0
        while True:
            leap = is_leap_year(year_offset)
            length = 365 + leap
            if days < length:
                break
            days -= length
            year_offset += 1

        month = 1
        while True:
            month_length = DAYS_IN_MONTH[month - 1] + (1 if leap and month == 2 else 0)
            if days < month_length:
                break
            days -= month_length
            month += 1

        return cls(2000 + year_offset, month, days + 1, hour, minute, second)

    @classmethod
    def from_strings(cls, date: str, time: str) -> "DateTime":
        """Parse a date ``"Mmm dd yyyy"`` and a time ``"hh:mm:ss"``."""
        parts = date.split()
        if len(parts) != 3:
            raise ValueError(f"date must be 'Mmm dd yyyy', got {date!r}")
        name, day_text, year_text = parts
        if name not in MONTH_NAMES:
            raise ValueError(f"unknown month name: {name!r}")
        year = int(year_text)
        year_offset = year - 2000 if year >= 2000 else year
        clock = time.split(":")
        if len(clock) != 3:
            raise ValueError(f"time must be 'hh:mm:ss', got {time!r}")
        hour, minute, second = (int(piece) for piece in clock)
        return cls(
            2000 + year_offset,
            MONTH_NAMES.index(name) + 1,
            int(day_text),
            hour,
            minute,
            second,
        )

    def unixtime(self) -> int:
        """Seconds since 1970-01-01, correct when the clock runs on UTC."""
        days = date_to_days(self.year_offset, self.month, self.day)
        seconds = ((days * 24 + self.hour) * 60 + self.minute) * 60 + self.second
        return (seconds + SECONDS_FROM_1970_TO_2000) & 0xFFFFFFFF


class RegisterBus:
    """The register file of a clock chip, read and written from a start register.

    The register pointer advances after each byte and wraps around at the end.
    """

    def __init__(self, registers: Optional[Iterable[int]] = None) -> None:
        if registers is None:
            self.registers = bytearray(REGISTER_COUNT)
        else:
            self.registers = bytearray(_check_byte(value) for value in registers)
            if not self.registers:
                raise ValueError("register file must not be empty")

    def _check_register(self, register: int) -> None:
        if not 0 <= register < len(self.registers):
            raise IndexError(f"no such register: {register:#04x}")

    def read(self, register: int, count: int = 1) -> bytes:
        """Read ``count`` consecutive registers starting at ``register``."""
        self._check_register(register)
        if count < 0:
            raise ValueError(f"negative read count: {count}")
        size = len(self.registers)
        return bytes(self.registers[(register + i) % size] for i in range(count))

    def write(self, register: int, *args: int) -> None:
        """Write the values in ``args`` to consecutive registers."""
        self._check_register(register)
        values = [_check_byte(value) for value in args]
        size = len(self.registers)
        for i, value in enumerate(values):
            self.registers[(register + i) % size] = value