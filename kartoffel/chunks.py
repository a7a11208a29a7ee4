"""Chunked persistent heap stored in an EEPROM image.

The heap starts at ``PERSISTENT_HEAP_ADDRESS`` and is a sequence of chunks::

    0        owning instance (255 marks an unused chunk)
    1        handle chosen by the owner
    2, 3     size of the data, big endian
    4 ...    data

Every chunk therefore costs ``P_OVERHEAD`` bytes on top of its data.  Chunks
are looked up by handle for the active instance.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator, MutableSequence, Optional

EPROM_SIZE = 4096
PERSISTENT_HEAP_ADDRESS = 130
MAIN_CHUNK_HANDLE = 1
TMP_HANDLE = 254
UNUSED_CHUNK = 255

P_INSTANCE = 0
P_HANDLE = 1
P_SIZE = 2
P_OVERHEAD = 4

# Error codes reported by the heap.
ERR_NO_CHUNK = 31
ERR_NO_CHUNK_FOR_INSTANCE = 32
ERR_NO_MEMORY = 33
ERR_READ_OUT_OF_RANGE = 34
ERR_WRITE_OUT_OF_RANGE = 35


class ChunkError(Exception):
    """A heap operation failed; ``code`` says how, ``value`` what it concerned."""

    def __init__(self, code: int, value: int) -> None:
        super().__init__(f"chunk error {code} ({value})")
        self.code = code
        self.value = value


@dataclass(frozen=True)
class Chunk:
    """A snapshot of one chunk header."""

    address: int
    instance: int
    handle: int
    size: int

    @property
    def unused(self) -> bool:
        return self.instance == UNUSED_CHUNK

    @property
    def data_address(self) -> int:
        return self.address + P_OVERHEAD


def _check_byte(value: int) -> int:
    if not 0 <= value <= 255:
        raise ValueError(f"byte value out of range: {value}")
    return value


class ChunkStore:
    """Allocates, resizes and accesses chunks of an EEPROM image."""

    def __init__(
        self,
        eeprom: Optional[MutableSequence[int]] = None,
        active_instance: int = 0,
    ) -> None:
        if eeprom is None:
            self.eeprom = bytearray(b"\xff" * EPROM_SIZE)
            self.format()
        else:
            if len(eeprom) < EPROM_SIZE:
                raise ValueError(f"EEPROM image must hold {EPROM_SIZE} bytes")
            self.eeprom = eeprom if isinstance(eeprom, bytearray) else bytearray(eeprom)
        self.active_instance = active_instance

    # Raw EEPROM access

    def _read_byte(self, address: int) -> int:
        return self.eeprom[address]

    def _write_byte(self, address: int, value: int) -> None:
        self.eeprom[address] = value & 0xFF

    def _read_int(self, address: int) -> int:
        return self.eeprom[address] * 256 + self.eeprom[address + 1]

    def _write_int(self, address: int, value: int) -> None:
        self.eeprom[address] = (value >> 8) & 0xFF
        self.eeprom[address + 1] = value & 0xFF

    # Chunk walking

    def _walk(self) -> Iterator[int]:
        address = PERSISTENT_HEAP_ADDRESS
        while address < EPROM_SIZE:
            yield address
            address += self._read_int(address + P_SIZE) + P_OVERHEAD

    def _unused(self, address: int) -> bool:
        return self._read_byte(address + P_INSTANCE) == UNUSED_CHUNK

    def _size_at(self, address: int) -> int:
        return self._read_int(address + P_SIZE)

    def _find(self, instance: int, handle: int) -> Optional[int]:
        for address in self._walk():
            if (
                self._read_byte(address + P_HANDLE) == handle
                and self._read_byte(address + P_INSTANCE) == instance
            ):
                return address
        return None

    # Public API

    def format(self) -> None:
        """Turn the whole heap area into one unused chunk."""
        start = PERSISTENT_HEAP_ADDRESS
        self._write_byte(start + P_INSTANCE, UNUSED_CHUNK)
        self._write_byte(start + P_HANDLE, 0)
        self._write_int(start + P_SIZE, EPROM_SIZE - start - P_OVERHEAD)

    def chunks(self) -> Iterator[Chunk]:
        """Yield every chunk of the heap in address order."""
        for address in self._walk():
            yield Chunk(
                address=address,
                instance=self._read_byte(address + P_INSTANCE),
                handle=self._read_byte(address + P_HANDLE),
                size=self._size_at(address),
            )

    def chunk_exists(self, handle: int, instance: Optional[int] = None) -> bool:
        """Tell whether a chunk with ``handle`` belongs to ``instance``."""
        owner = self.active_instance if instance is None else instance
        return self._find(owner, handle) is not None

    def chunk_for_handle(self, handle: int) -> int:
        """Return the address of the active instance's chunk for ``handle``."""
        address = self._find(self.active_instance, handle)
        if address is None:
            raise ChunkError(ERR_NO_CHUNK, handle)
        return address

    def data_address(self, instance: int, handle: int) -> int:
        """Return the address of the data of ``instance``'s chunk ``handle``."""
        address = self._find(instance, handle)
        if address is None:
            raise ChunkError(ERR_NO_CHUNK_FOR_INSTANCE, handle)
        return address + P_OVERHEAD

    def free_all_chunks(self) -> None:
        """Release every chunk owned by the active instance."""
        for address in self._walk():
            if self._read_byte(address + P_INSTANCE) == self.active_instance:
                self._write_byte(address + P_INSTANCE, UNUSED_CHUNK)

    def decrease_instance_offset(self) -> None:
        """Shift owners above the active instance down by one."""
        for address in self._walk():
            instance = self._read_byte(address + P_INSTANCE)
            if instance > self.active_instance and instance != UNUSED_CHUNK:
                self._write_byte(address + P_INSTANCE, instance - 1)

    def available(self) -> int:
        """Sum of the data sizes of all unused chunks."""
        return sum(self._size_at(a) for a in self._walk() if self._unused(a))

    def chunk_size(self, handle: int) -> int:
        """Data size of the active instance's chunk ``handle``."""
        return self._size_at(self.chunk_for_handle(handle))

    def _alloc(self, handle: int, size: int) -> None:
        # An unused chunk must hold the data plus the header of the new chunk
        # and the header of the unused chunk left behind.
        for address in self._walk():
            free_size = self._size_at(address)
            if self._unused(address) and size + 2 * P_OVERHEAD <= free_size:
                break
        else:
            raise ChunkError(ERR_NO_MEMORY, handle)

        self._write_byte(address + P_INSTANCE, self.active_instance)
        self._write_byte(address + P_HANDLE, handle)
        self._write_int(address + P_SIZE, size)
        rest = address + P_OVERHEAD + size
        self._write_byte(rest + P_INSTANCE, UNUSED_CHUNK)
        self._write_byte(rest + P_HANDLE, 0)
        self._write_int(rest + P_SIZE, free_size - size - P_OVERHEAD)

    def _merge(self) -> None:
        merged = True
        while merged:
            merged = False
            previous = None
            for address in self._walk():
                if previous is not None and self._unused(previous) and self._unused(address):
                    self._write_int(
                        previous + P_SIZE,
                        self._size_at(previous) + self._size_at(address) + P_OVERHEAD,
                    )
                    merged = True
                    break
                previous = address

    def alloc_chunk(self, handle: int, size: int) -> int:
        """Allocate ``size`` bytes under ``handle`` and return the handle."""
        _check_byte(handle)
        if size < 0:
            raise ValueError(f"negative chunk size: {size}")
        self._alloc(handle, size)
        if size:
            self.set(0, 0, handle)
        self._merge()
        return handle

    def dealloc_chunk(self, handle: int) -> None:
        """Mark the active instance's chunk ``handle`` as unused."""
        address = self.chunk_for_handle(handle)
        self._write_byte(address + P_INSTANCE, UNUSED_CHUNK)
        self._write_byte(address + P_HANDLE, 0)

    def _replace(self, handle: int, new_size: int, fill) -> None:
        old = self.chunk_for_handle(handle)
        self.alloc_chunk(TMP_HANDLE, new_size)
        new = self.chunk_for_handle(TMP_HANDLE)
        fill(old + P_OVERHEAD, new + P_OVERHEAD)
        self.dealloc_chunk(handle)
        self._merge()
        self._write_byte(new + P_HANDLE, handle)

    def resize_chunk(self, handle: int, new_size: int) -> None:
        """Move the chunk to a new one of ``new_size`` bytes, keeping its data."""
        old_size = self.chunk_size(handle)

        def fill(source: int, target: int) -> None:
            count = min(old_size, new_size)
            self.eeprom[target : target + count] = self.eeprom[source : source + count]

        self._replace(handle, new_size, fill)

    def delete_fragment(self, handle: int, address: int, delta: int) -> None:
        """Remove ``delta`` bytes starting at ``address`` from a chunk."""
        size = self.chunk_size(handle)
        new_size = size - delta
        if delta < 0 or new_size < 0:
            raise ValueError(f"cannot delete {delta} bytes from a chunk of {size}")

        def fill(source: int, target: int) -> None:
            head = max(0, min(address, new_size))
            self.eeprom[target : target + head] = self.eeprom[source : source + head]
            tail = new_size - head
            self.eeprom[target + head : target + new_size] = self.eeprom[
                source + head + delta : source + head + delta + tail
            ]

        self._replace(handle, new_size, fill)

    def insert_fragment(self, handle: int, address: int, delta: int) -> None:
        """Open a gap of ``delta`` bytes at ``address`` in a chunk."""
        size = self.chunk_size(handle)
        if delta < 0:
            raise ValueError(f"negative fragment size: {delta}")

        def fill(source: int, target: int) -> None:
            head = max(0, min(address, size))
            self.eeprom[target : target + head] = self.eeprom[source : source + head]
            self.eeprom[target + head + delta : target + size + delta] = self.eeprom[
                source + head : source + size
            ]

        self._replace(handle, size + delta, fill)

    def get(self, address: int, handle: int = MAIN_CHUNK_HANDLE) -> int:
        """Read one data byte of a chunk."""
        chunk = self.chunk_for_handle(handle)
        if not 0 <= address < self._size_at(chunk):
            raise ChunkError(ERR_READ_OUT_OF_RANGE, address)
        return self._read_byte(chunk + P_OVERHEAD + address)

    def set(self, address: int, value: int, handle: int = MAIN_CHUNK_HANDLE) -> None:
        """Write one data byte of a chunk, touching the EEPROM only on change."""
        _check_byte(value)
        chunk = self.chunk_for_handle(handle)
        if not 0 <= address < self._size_at(chunk):
            raise ChunkError(ERR_WRITE_OUT_OF_RANGE, address)
        target = chunk + P_OVERHEAD + address
        if self._read_byte(target) != value:
            self._write_byte(target, value)

    def get_int(self, address: int) -> int:
        """Read a big-endian 16-bit value from the main chunk."""
        return self.get(address) * 256 + self.get(address + 1)

    def set_int(self, address: int, value: int) -> None:
        """Write a big-endian 16-bit value to the main chunk."""
        self.set(address, (value // 256) & 0xFF)
        self.set(address + 1, value % 256)

    def get_long(self, address: int) -> int:
        """Read a little-endian 32-bit value from the main chunk."""
        return int.from_bytes(bytes(self.get(address + i) for i in range(4)), "little")

    def get_float(self, address: int, handle: int = MAIN_CHUNK_HANDLE) -> float:
        """Read a little-endian 32-bit float from a chunk."""
        raw = bytes(self.get(address + i, handle) for i in range(4))
        return struct.unpack("<f", raw)[0]

    def set_float(self, address: int, value: float, handle: int = MAIN_CHUNK_HANDLE) -> None:
        """Write a little-endian 32-bit float to a chunk."""
        for offset, byte in enumerate(struct.pack("<f", value)):
            self.set(address + offset, byte, handle)