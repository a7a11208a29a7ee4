# kartoffel

Building blocks for a simulated home-automation controller board: a persistent
heap kept in an EEPROM image, the board's ports and text log, a DS3231
real-time clock driven through an in-memory register file, and uncompressed
BMP images.

## What is inside

- `kartoffel.bmp` – read, create and write uncompressed BMP images
  (8, 24 and 32 bits per pixel). `Bitmap` gives pixel and palette access
  (`get_pixel_rgb`, `set_pixel_rgb`, `get_pixel_index`, `set_pixel_index`,
  `get_palette_color`, `set_palette_color`) and the properties `width`,
  `height` and `depth`. Images are loaded with `Bitmap.read` or
  `Bitmap.from_bytes` and saved with `write` or `to_bytes`. Problems are
  raised as `BmpError`, which carries a `BmpStatus`.
- `kartoffel.chunks` – `ChunkStore`, a persistent heap laid out in a 4096-byte
  EEPROM image. Chunks are identified by an owning instance and a handle; they
  can be allocated, freed, resized, and have fragments inserted or deleted.
  Data bytes, 16-bit integers and 32-bit floats are read and written with
  `get`, `set`, `get_int`, `set_int`, `get_long`, `get_float` and `set_float`.
  Misuse raises `ChunkError`, whose `code` tells what went wrong.
- `kartoffel.board` – `Board`, a stand-in for the controller's I/O: 100
  digital and 100 analog ports (`Port`), a scrolling text log of at most
  `max_lines` lines (`log`, `log_line`, `lines`), and `micros` / `millis`
  clocks. `format_float` and `format_hex` render numbers the way the log
  shows them.
- `kartoffel.rtctime` – `DateTime` (seconds since 1970 and back, parsing of
  `"Mmm dd yyyy"` / `"hh:mm:ss"` strings), BCD helpers `dec_to_bcd` and
  `bcd_to_dec`, `is_leap_year` and `date_to_days`, and `RegisterBus`, an
  in-memory register file standing in for the clock chip's bus.
- `kartoffel.ds3231` – `DS3231`, the real-time clock driver working over a
  `RegisterBus`: time fields, a one-burst `now()`, 12/24-hour mode,
  temperature, oscillator and 32 kHz output control.

## What it does not do

- There is no command-line tool; the package is a library only. In particular
  it has no encoder that turns images into icon or font tables, even though
  `kartoffel.bmp` can read the images such a tool would start from.
- `DS3231` does not read, set, enable or check the clock's two alarms.
- `Board` keeps port values and log text but draws nothing; there is no
  display or touch screen behind it.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Library use

```python
from kartoffel.bmp import Bitmap

image = Bitmap(4, 2, 24)
image.set_pixel_rgb(1, 0, 255, 128, 0)
print(image.get_pixel_rgb(1, 0))
image.write("out.bmp")

again = Bitmap.read("out.bmp")
print(again.width, again.height, again.depth)
```

```python
from kartoffel.chunks import ChunkStore

store = ChunkStore()
store.alloc_chunk(1, 16)
store.set_int(0, 1234)
print(store.get_int(0), store.available())
```

```python
from kartoffel.rtctime import DateTime, RegisterBus
from kartoffel.ds3231 import DS3231

stamp = DateTime.from_unix(1_000_000_000)
print(stamp.unixtime())

clock = DS3231(RegisterBus(bytearray(19)))
clock.set_minute(42)
print(clock.get_minute())
```