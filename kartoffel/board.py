"""Simulated controller board: digital and analog ports plus a text log."""

from __future__ import annotations

import struct
import sys
import time
from dataclasses import dataclass
from typing import Optional, TextIO, Union

PORT_COUNT = 100
ANALOG_MAX = 1023
MAX_LINES = 42
_SCROLLER_LEFT = 20
_SCROLLER_WIDTH = 280
_APPEND_LIMIT = 999


@dataclass
class Port:
    """State of one pin: its value and whether it was just accessed."""

    value: int = 0
    just_read: int = 0


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _cdiv(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _cmod(a: int, b: int) -> int:
    return a - b * _cdiv(a, b)


def format_float(value: float) -> str:
    """Format a float as its integer part and three truncated decimals."""
    whole = int(value)
    decimals = int(_f32(_f32(_f32(value) * 1000) - whole * 1000))
    return "".join(
        (
            str(whole),
            ".",
            str(_cdiv(decimals, 100)),
            str(_cmod(_cdiv(decimals, 10), 10)),
            str(_cmod(decimals, 10)),
        )
    )


def format_hex(number: int, digits: int) -> str:
    """Format a number as upper-case hex padded to 2 or 4 digits."""
    if digits not in (2, 4):
        raise ValueError(f"hex width must be 2 or 4, got {digits}")
    return f"{number & 0xFFFFFFFF:0{digits}X}"


class Board:
    """Port state and scrolling log of a simulated board."""

    def __init__(self, max_lines: int = MAX_LINES, out: Optional[TextIO] = None) -> None:
        if max_lines < 1:
            raise ValueError("max_lines must be at least 1")
        self.max_lines = max_lines
        self.out = out
        self.analog_ports = [Port() for _ in range(PORT_COUNT)]
        self.digital_ports = [Port() for _ in range(PORT_COUNT)]
        self.selected_analog_port = -1
        self.analog_value = 0
        self._lines = [""]
        self._micros = 0
        self._started = time.monotonic()

    @staticmethod
    def _port(ports: list, pin: int) -> Port:
        if not 0 <= pin < len(ports):
            raise IndexError(f"no such pin: {pin}")
        return ports[pin]

    def read_analog(self, pin: int) -> int:
        port = self._port(self.analog_ports, pin)
        port.just_read = 1
        return port.value

    def read_digital(self, pin: int) -> int:
        port = self._port(self.digital_ports, pin)
        port.just_read = 1
        return port.value

    def write_digital(self, pin: int, value: int) -> None:
        port = self._port(self.digital_ports, pin)
        port.just_read = 1
        port.value = value

    def write_analog(self, pin: int, value: int) -> None:
        port = self._port(self.analog_ports, pin)
        port.just_read = 1
        port.value = value

    def toggle_digital(self, pin: int) -> int:
        """Flip a digital port as a click on it does; return the new value."""
        port = self._port(self.digital_ports, pin)
        self.write_digital(pin, 0 if port.value else 1)
        return port.value

    def select_analog_port(self, pin: int) -> None:
        """Make ``pin`` the port the analog scroller controls."""
        port = self._port(self.analog_ports, pin)
        self.selected_analog_port = pin
        self.analog_value = port.value

    def set_analog_from_touch(self, x: int) -> int:
        """Set the scroller from a touch at ``x`` and return the new value."""
        value = (x - _SCROLLER_LEFT) * 1024 // _SCROLLER_WIDTH
        self.analog_value = max(0, min(ANALOG_MAX, value))
        if self.selected_analog_port >= 0:
            self.write_analog(self.selected_analog_port, self.analog_value)
        return self.analog_value

    def _emit(self, text: str) -> None:
        stream = self.out if self.out is not None else sys.stdout
        stream.write(text)

    def log(self, value: Union[str, int, float], digits: Optional[int] = None) -> None:
        """Append a value to the current log line."""
        if digits is not None:
            text = format_hex(int(value), digits)
        elif isinstance(value, float):
            text = format_float(value)
        else:
            text = str(value)
        self._emit(text)
        self._lines[-1] += text[:_APPEND_LIMIT]

    def log_line(self, value: Union[str, int, float, None] = None) -> None:
        """Append an optional value and start a new log line."""
        if value is not None:
            self.log(value)
        self._emit("\n")
        if len(self._lines) == self.max_lines:
            self._lines.pop(0)
        self._lines.append("")

    def lines(self) -> list[str]:
        """The log lines currently kept, oldest first."""
        return list(self._lines)

    def micros(self) -> int:
        """A simulated microsecond clock that advances 10 per call."""
        self._micros += 10
        return self._micros

    def millis(self) -> int:
        """Milliseconds since the board was created."""
        return int((time.monotonic() - self._started) * 1000) & 0xFFFFFFFF