import pytest

from kartoffel.chunks import (
    EPROM_SIZE,
    MAIN_CHUNK_HANDLE,
    P_OVERHEAD,
    PERSISTENT_HEAP_ADDRESS,
    UNUSED_CHUNK,
    ChunkError,
    ChunkStore,
)


def _fill(store, handle, values):
    for address, value in enumerate(values):
        store.set(address, value, handle)


def _data(store, handle):
    return [store.get(i, handle) for i in range(store.chunk_size(handle))]


def test_fresh_store_has_single_unused_chunk():
    store = ChunkStore()
    chunks = list(store.chunks())
    assert len(chunks) == 1
    assert chunks[0].address == PERSISTENT_HEAP_ADDRESS
    assert chunks[0].unused
    assert store.available() == EPROM_SIZE - PERSISTENT_HEAP_ADDRESS - P_OVERHEAD


def test_alloc_reduces_available_by_size_and_overhead():
    store = ChunkStore()
    before = store.available()
    assert store.alloc_chunk(MAIN_CHUNK_HANDLE, 10) == MAIN_CHUNK_HANDLE
    assert store.chunk_size(MAIN_CHUNK_HANDLE) == 10
    assert store.available() == before - 10 - P_OVERHEAD
    assert store.chunk_exists(MAIN_CHUNK_HANDLE)


def test_chunks_cover_heap_exactly():
    store = ChunkStore()
    store.alloc_chunk(1, 7)
    store.alloc_chunk(2, 20)
    chunks = list(store.chunks())
    total = sum(c.size + P_OVERHEAD for c in chunks)
    assert total == EPROM_SIZE - PERSISTENT_HEAP_ADDRESS
    assert [c.handle for c in chunks[:2]] == [1, 2]


def test_set_and_get_bytes():
    store = ChunkStore()
    store.alloc_chunk(3, 5)
    _fill(store, 3, [9, 8, 7, 6, 5])
    assert _data(store, 3) == [9, 8, 7, 6, 5]


def test_get_out_of_range_raises():
    store = ChunkStore()
    store.alloc_chunk(3, 5)
    with pytest.raises(ChunkError) as info:
        store.get(5, 3)
    assert info.value.code == 34


def test_set_out_of_range_raises():
    store = ChunkStore()
    store.alloc_chunk(3, 5)
    with pytest.raises(ChunkError) as info:
        store.set(-1, 1, 3)
    assert info.value.code == 35


def test_missing_handle_raises():
    store = ChunkStore()
    with pytest.raises(ChunkError) as info:
        store.chunk_for_handle(42)
    assert info.value.code == 31
    assert info.value.value == 42


def test_data_address_for_missing_raises():
    store = ChunkStore()
    with pytest.raises(ChunkError) as info:
        store.data_address(0, 42)
    assert info.value.code == 32


def test_out_of_memory_raises():
    store = ChunkStore()
    with pytest.raises(ChunkError) as info:
        store.alloc_chunk(5, EPROM_SIZE)
    assert info.value.code == 33


def test_int_round_trip():
    store = ChunkStore()
    store.alloc_chunk(MAIN_CHUNK_HANDLE, 8)
    store.set_int(2, 40000)
    assert store.get_int(2) == 40000
    assert store.get(2) == 40000 // 256


def test_long_round_trip():
    store = ChunkStore()
    store.alloc_chunk(MAIN_CHUNK_HANDLE, 8)
    _fill(store, MAIN_CHUNK_HANDLE, (1234567).to_bytes(4, "little"))
    assert store.get_long(0) == 1234567


def test_float_round_trip():
    store = ChunkStore()
    store.alloc_chunk(MAIN_CHUNK_HANDLE, 8)
    store.set_float(4, 2.5)
    assert store.get_float(4) == 2.5


def test_dealloc_and_merge_on_next_alloc():
    store = ChunkStore()
    initial = store.available()
    store.alloc_chunk(1, 10)
    store.dealloc_chunk(1)
    assert not store.chunk_exists(1)
    store.alloc_chunk(2, 0)
    assert len(list(store.chunks())) == 2
    assert store.available() == initial - P_OVERHEAD


def test_resize_keeps_data():
    store = ChunkStore()
    store.alloc_chunk(1, 4)
    _fill(store, 1, [1, 2, 3, 4])
    store.resize_chunk(1, 8)
    assert store.chunk_size(1) == 8
    assert _data(store, 1)[:4] == [1, 2, 3, 4]
    assert not store.chunk_exists(254)


def test_insert_fragment_opens_gap():
    store = ChunkStore()
    store.alloc_chunk(1, 5)
    _fill(store, 1, [1, 2, 3, 4, 5])
    store.insert_fragment(1, 2, 3)
    data = _data(store, 1)
    assert len(data) == 8
    assert data[:2] == [1, 2]
    assert data[5:] == [3, 4, 5]


def test_delete_fragment_removes_bytes():
    store = ChunkStore()
    store.alloc_chunk(1, 5)
    _fill(store, 1, [1, 2, 3, 4, 5])
    store.delete_fragment(1, 1, 2)
    assert _data(store, 1) == [1, 4, 5]


def test_instances_are_separate():
    store = ChunkStore(active_instance=0)
    store.alloc_chunk(1, 4)
    store.active_instance = 1
    store.alloc_chunk(1, 4)
    first = store.data_address(0, 1)
    second = store.data_address(1, 1)
    assert first != second
    assert store.chunk_for_handle(1) + P_OVERHEAD == second


def test_free_all_chunks_only_active_instance():
    store = ChunkStore(active_instance=0)
    store.alloc_chunk(1, 4)
    store.active_instance = 1
    store.alloc_chunk(1, 4)
    store.free_all_chunks()
    assert not store.chunk_exists(1, instance=1)
    assert store.chunk_exists(1, instance=0)


def test_decrease_instance_offset():
    store = ChunkStore(active_instance=2)
    store.alloc_chunk(7, 4)
    store.active_instance = 0
    store.decrease_instance_offset()
    assert store.chunk_exists(7, instance=1)
    assert not store.chunk_exists(7, instance=2)
    assert any(c.instance == UNUSED_CHUNK for c in store.chunks())


def test_shared_eeprom_image():
    image = bytearray(b"\xff" * EPROM_SIZE)
    store = ChunkStore(image)
    store.format()
    store.alloc_chunk(1, 3)
    store.set(0, 77, 1)
    again = ChunkStore(image)
    assert again.get(0, 1) == 77


def test_short_image_rejected():
    with pytest.raises(ValueError):
        ChunkStore(bytearray(10))