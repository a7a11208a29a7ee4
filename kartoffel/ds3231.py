"""Time, temperature and oscillator control of a DS3231 real-time clock."""

from __future__ import annotations

from kartoffel.rtctime import DateTime, RegisterBus, bcd_to_dec, dec_to_bcd

REG_SECONDS = 0x00
REG_MINUTES = 0x01
REG_HOURS = 0x02
REG_DAY_OF_WEEK = 0x03
REG_DATE = 0x04
REG_MONTH = 0x05
REG_YEAR = 0x06
REG_CONTROL = 0x0E
REG_STATUS = 0x0F
REG_TEMPERATURE = 0x11

_HOUR_12_FLAG = 0b01000000
_PM_FLAG = 0b00100000
_CENTURY_FLAG = 0b10000000
_OSCILLATOR_STOP_FLAG = 0b10000000
_EN32KHZ_FLAG = 0b00001000
_BATTERY_SQUARE_WAVE_FLAG = 0b01000000
_NOT_ENABLE_OSCILLATOR_FLAG = 0b10000000

ERROR_TEMPERATURE = -9999.0


class DS3231:
    """A DS3231 clock reached through a register bus."""

    def __init__(self, bus: RegisterBus) -> None:
        self.bus = bus

    def _read(self, register: int) -> int:
        return self.bus.read(register, 1)[0]

    def _read_control(self, status: bool) -> int:
        return self._read(REG_STATUS if status else REG_CONTROL)

    def _write_control(self, value: int, status: bool) -> None:
        self.bus.write(REG_STATUS if status else REG_CONTROL, value & 0xFF)

    def now(self) -> DateTime:
        """Read date and time in one burst so that no field rolls over."""
        second, minute, hour, _, date, month, year = self.bus.read(REG_SECONDS, 7)
        return DateTime(
            bcd_to_dec(year) + 2000,
            bcd_to_dec(month),
            bcd_to_dec(date),
            bcd_to_dec(hour),
            bcd_to_dec(minute),
            bcd_to_dec(second & 0x7F),
        )

    def get_second(self) -> int:
        return bcd_to_dec(self._read(REG_SECONDS))

    def get_minute(self) -> int:
        return bcd_to_dec(self._read(REG_MINUTES))

    def get_hour(self) -> tuple[int, bool, bool]:
        """Return (hour, twelve-hour mode, pm); pm is False in 24-hour mode."""
        raw = self._read(REG_HOURS)
        h12 = bool(raw & _HOUR_12_FLAG)
        if h12:
            return bcd_to_dec(raw & 0b00011111), True, bool(raw & _PM_FLAG)
        return bcd_to_dec(raw & 0b00111111), False, False

    def get_dow(self) -> int:
        return bcd_to_dec(self._read(REG_DAY_OF_WEEK))

    def get_date(self) -> int:
        return bcd_to_dec(self._read(REG_DATE))

    def get_month(self) -> tuple[int, bool]:
        """Return (month, century roll-over flag)."""
        raw = self._read(REG_MONTH)
        return bcd_to_dec(raw & 0b01111111), bool(raw & _CENTURY_FLAG)

    def get_year(self) -> int:
        """The last two digits of the year."""
        return bcd_to_dec(self._read(REG_YEAR))

    def set_second(self, second: int) -> None:
        """Set the seconds and clear the oscillator stop flag."""
        self.bus.write(REG_SECONDS, dec_to_bcd(second))
        self._write_control(self._read_control(True) & 0b01111111, True)

    def set_minute(self, minute: int) -> None:
        self.bus.write(REG_MINUTES, dec_to_bcd(minute))

    def set_hour(self, hour: int) -> None:
        """Set the hour, given in 24-hour form, keeping the 12/24 mode."""
        h12 = bool(self._read(REG_HOURS) & _HOUR_12_FLAG)
        if h12:
            pm = hour > 11
            shown = hour - 12 if hour > 11 else hour
            if shown == 0:
                shown = 12
            raw = dec_to_bcd(shown) | (_PM_FLAG if pm else 0) | _HOUR_12_FLAG
        else:
            raw = dec_to_bcd(hour) & 0b10111111
        self.bus.write(REG_HOURS, raw)

    def set_dow(self, dow: int) -> None:
        self.bus.write(REG_DAY_OF_WEEK, dec_to_bcd(dow))

    def set_date(self, date: int) -> None:
        self.bus.write(REG_DATE, dec_to_bcd(date))

    def set_month(self, month: int) -> None:
        self.bus.write(REG_MONTH, dec_to_bcd(month))

    def set_year(self, year: int) -> None:
        """Set the last two digits of the year."""
        self.bus.write(REG_YEAR, dec_to_bcd(year))

    def set_clock_mode(self, h12: bool) -> None:
        """Switch to 12-hour (True) or 24-hour (False) mode."""
        raw = self._read(REG_HOURS)
        if h12:
            raw |= _HOUR_12_FLAG
        else:
            raw &= 0b10111111
        self.bus.write(REG_HOURS, raw)

    def get_temperature(self) -> float:
        """The chip temperature in degrees Celsius, in steps of 0.25."""
        raw = self.bus.read(REG_TEMPERATURE, 2)
        if len(raw) < 2:
            return ERROR_TEMPERATURE
        msb, lsb = raw
        value = (msb << 8) | (lsb & 0xC0)
        if value >= 0x8000:
            value -= 0x10000
        return value / 256.0

    def enable_oscillator(self, on: bool, battery: bool, frequency: int) -> None:
        """Run or stop the oscillator and pick the square wave frequency.

        Frequency 0 is 1 Hz, 1 is 1.024 kHz, 2 is 4.096 kHz and 3 (also used
        for anything larger) is 8.192 kHz.
        """
        if frequency < 0:
            raise ValueError(f"negative frequency selector: {frequency}")
        frequency = min(frequency, 3)
        raw = self._read_control(False) & 0b11100111
        if battery:
            raw |= _BATTERY_SQUARE_WAVE_FLAG
        else:
            raw &= 0b10111111
        if on:
            raw &= 0b01111011
        else:
            raw |= _NOT_ENABLE_OSCILLATOR_FLAG
        raw |= frequency << 3
        self._write_control(raw, False)

    def enable_32khz(self, on: bool) -> None:
        """Turn the 32 kHz output pin on or off."""
        raw = self._read_control(True)
        if on:
            raw |= _EN32KHZ_FLAG
        else:
            raw &= 0b11110111
        self._write_control(raw, True)

    def oscillator_check(self) -> bool:
        """False when the oscillator has stopped since the seconds were last set."""
        return not self._read_control(True) & _OSCILLATOR_STOP_FLAG