"""Uncompressed BMP images with 8 (indexed), 24 and 32 bits per pixel."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from os import PathLike
from typing import Union

_MAGIC = 0x4D42
_HEADER_FORMAT = "<HIHHIIIIHHIIIIII"
_HEADER_LENGTH = struct.calcsize(_HEADER_FORMAT)
_INFO_HEADER_SIZE = 40
_PALETTE_SIZE = 256 * 4
_SUPPORTED_DEPTHS = (8, 24, 32)


class BmpStatus(enum.Enum):
    """Kinds of failure a bitmap operation can report."""

    ERROR = (1, "General error")
    OUT_OF_MEMORY = (2, "Could not allocate enough memory to complete the operation")
    IO_ERROR = (3, "File input/output error")
    FILE_NOT_FOUND = (4, "File not found")
    FILE_NOT_SUPPORTED = (
        5,
        "File is not a supported BMP variant (must be uncompressed 8, 24 or 32 BPP)",
    )
    FILE_INVALID = (6, "File is not a valid BMP image")
    INVALID_ARGUMENT = (7, "An argument is invalid or out of range")
    TYPE_MISMATCH = (8, "The requested action is not compatible with the BMP's type")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def description(self) -> str:
        return self.value[1]


class BmpError(Exception):
    """Raised when a bitmap operation fails; carries a BmpStatus."""

    def __init__(self, status: BmpStatus) -> None:
        super().__init__(status.description)
        self.status = status


@dataclass
class _Header:
    magic: int = _MAGIC
    file_size: int = 0
    reserved1: int = 0
    reserved2: int = 0
    data_offset: int = 0
    header_size: int = _INFO_HEADER_SIZE
    width: int = 0
    height: int = 0
    planes: int = 1
    bits_per_pixel: int = 0
    compression_type: int = 0
    image_data_size: int = 0
    h_pixels_per_meter: int = 0
    v_pixels_per_meter: int = 0
    colors_used: int = 0
    colors_required: int = 0

    def pack(self) -> bytes:
        return struct.pack(
            _HEADER_FORMAT,
            self.magic,
            self.file_size,
            self.reserved1,
            self.reserved2,
            self.data_offset,
            self.header_size,
            self.width,
            self.height,
            self.planes,
            self.bits_per_pixel,
            self.compression_type,
            self.image_data_size,
            self.h_pixels_per_meter,
            self.v_pixels_per_meter,
            self.colors_used,
            self.colors_required,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "_Header":
        return cls(*struct.unpack(_HEADER_FORMAT, data))


def _check_byte(value: int) -> int:
    if not 0 <= value <= 255:
        raise BmpError(BmpStatus.INVALID_ARGUMENT)
    return value


class Bitmap:
    """A bitmap image held in memory in its on-disk layout."""

    def __init__(self, width: int, height: int, depth: int) -> None:
        if width <= 0 or height <= 0:
            raise BmpError(BmpStatus.INVALID_ARGUMENT)
        if depth not in _SUPPORTED_DEPTHS:
            raise BmpError(BmpStatus.FILE_NOT_SUPPORTED)

        bytes_per_row = width * (depth >> 3)
        bytes_per_row += -bytes_per_row % 4
        palette_size = _PALETTE_SIZE if depth == 8 else 0

        image_size = bytes_per_row * height
        self._header = _Header(
            width=width,
            height=height,
            bits_per_pixel=depth,
            image_data_size=image_size,
            file_size=image_size + _HEADER_LENGTH + palette_size,
            data_offset=_HEADER_LENGTH + palette_size,
        )
        self._palette = bytearray(_PALETTE_SIZE) if depth == 8 else None
        self._data = bytearray(image_size)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bitmap":
        """Parse a complete BMP file image."""
        view = memoryview(data)
        if len(view) < _HEADER_LENGTH:
            raise BmpError(BmpStatus.FILE_INVALID)
        header = _Header.unpack(view[:_HEADER_LENGTH])
        if header.magic != _MAGIC:
            raise BmpError(BmpStatus.FILE_INVALID)
        if (
            header.bits_per_pixel not in _SUPPORTED_DEPTHS
            or header.compression_type != 0
            or header.header_size != _INFO_HEADER_SIZE
        ):
            raise BmpError(BmpStatus.FILE_NOT_SUPPORTED)

        position = _HEADER_LENGTH
        palette = None
        if header.bits_per_pixel == 8:
            palette = bytearray(view[position : position + _PALETTE_SIZE])
            if len(palette) != _PALETTE_SIZE:
                raise BmpError(BmpStatus.FILE_INVALID)
            position += _PALETTE_SIZE

        pixels = bytearray(view[position : position + header.image_data_size])
        if len(pixels) != header.image_data_size:
            raise BmpError(BmpStatus.FILE_INVALID)

        bitmap = cls.__new__(cls)
        bitmap._header = header
        bitmap._palette = palette
        bitmap._data = pixels
        return bitmap

    @classmethod
    def read(cls, path: Union[str, PathLike]) -> "Bitmap":
        """Read a BMP file from disk."""
        try:
            with open(path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            raise BmpError(BmpStatus.FILE_NOT_FOUND) from exc
        return cls.from_bytes(content)

    def to_bytes(self) -> bytes:
        """Return the image as the bytes of a BMP file."""
        parts = [self._header.pack()]
        if self._palette is not None:
            parts.append(bytes(self._palette))
        parts.append(bytes(self._data))
        return b"".join(parts)

    def write(self, path: Union[str, PathLike]) -> None:
        """Write the image to a BMP file."""
        try:
            handle = open(path, "wb")
        except OSError as exc:
            raise BmpError(BmpStatus.FILE_NOT_FOUND) from exc
        with handle:
            try:
                handle.write(self.to_bytes())
            except OSError as exc:
                raise BmpError(BmpStatus.IO_ERROR) from exc

    @property
    def width(self) -> int:
        return self._header.width

    @property
    def height(self) -> int:
        return self._header.height

    @property
    def depth(self) -> int:
        return self._header.bits_per_pixel

    def _check_position(self, x: int, y: int) -> None:
        if not (0 <= x < self._header.width and 0 <= y < self._header.height):
            raise BmpError(BmpStatus.INVALID_ARGUMENT)

    def _offset(self, x: int, y: int) -> int:
        # Rows are stored bottom-up, each padded to a multiple of four bytes.
        bytes_per_row = self._header.image_data_size // self._header.height
        bytes_per_pixel = self._header.bits_per_pixel >> 3
        return (self._header.height - y - 1) * bytes_per_row + x * bytes_per_pixel

    def _require_indexed(self) -> bytearray:
        if self._header.bits_per_pixel != 8 or self._palette is None:
            raise BmpError(BmpStatus.TYPE_MISMATCH)
        return self._palette

    def get_pixel_rgb(self, x: int, y: int) -> tuple[int, int, int]:
        """Return the (r, g, b) colour of a pixel, resolving palette indices."""
        self._check_position(x, y)
        offset = self._offset(x, y)
        source = self._data
        if self._header.bits_per_pixel == 8:
            source = self._palette
            offset = self._data[offset] * 4
        blue, green, red = source[offset : offset + 3]
        return red, green, blue

    def set_pixel_rgb(self, x: int, y: int, r: int, g: int, b: int) -> None:
        """Set the colour of a pixel in a 24 or 32 bit image."""
        self._check_position(x, y)
        if self._header.bits_per_pixel not in (24, 32):
            raise BmpError(BmpStatus.TYPE_MISMATCH)
        offset = self._offset(x, y)
        self._data[offset : offset + 3] = bytes(
            (_check_byte(b), _check_byte(g), _check_byte(r))
        )

    def get_pixel_index(self, x: int, y: int) -> int:
        """Return the palette index of a pixel in an 8 bit image."""
        self._check_position(x, y)
        self._require_indexed()
        return self._data[self._offset(x, y)]

    def set_pixel_index(self, x: int, y: int, value: int) -> None:
        """Set the palette index of a pixel in an 8 bit image."""
        self._check_position(x, y)
        self._require_indexed()
        self._data[self._offset(x, y)] = _check_byte(value)

    def get_palette_color(self, index: int) -> tuple[int, int, int]:
        """Return the (r, g, b) colour stored at a palette index."""
        palette = self._require_indexed()
        offset = _check_byte(index) * 4
        blue, green, red = palette[offset : offset + 3]
        return red, green, blue

    def set_palette_color(self, index: int, r: int, g: int, b: int) -> None:
        """Store an (r, g, b) colour at a palette index."""
        palette = self._require_indexed()
        offset = _check_byte(index) * 4
        palette[offset : offset + 3] = bytes(
            (_check_byte(b), _check_byte(g), _check_byte(r))
        )