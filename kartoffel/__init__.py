"""Simulated controller board pieces: EEPROM chunk heap, board I/O, DS3231 clock and BMP images."""

__version__ = "0.1.0"
__all__ = ["bmp", "board", "chunks", "ds3231", "rtctime"]