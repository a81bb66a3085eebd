import pytest

from clmm.bitmap_extension import (
    DISCRIMINATOR,
    EXTENSION_TICKARRAY_BITMAP_SIZE,
    TickArrayBitmapExtension,
)
from clmm.tick import ClmmError, ErrorCode
from clmm.tick_array import TICK_ARRAY_SIZE


def _bit(words, index):
    return bool((words[index // 64] >> (index % 64)) & 1)


def _flip_all(extension, tick_spacing, start_indexes):
    for start_index in start_indexes:
        extension.flip_tick_array_bit(start_index, tick_spacing)


def _initialized_flags(extension, tick_spacing, start_indexes):
    return [
        extension.check_tick_array_is_initialized(start_index, tick_spacing)
        for start_index in start_indexes
    ]


def test_get_bitmap_offset():
    s = 1
    assert TickArrayBitmapExtension.get_bitmap_offset(s * TICK_ARRAY_SIZE * 512, 1) == 0
    assert TickArrayBitmapExtension.get_bitmap_offset(s * TICK_ARRAY_SIZE * 513, 1) == 0
    assert TickArrayBitmapExtension.get_bitmap_offset(s * TICK_ARRAY_SIZE * 1024, 1) == 1
    assert TickArrayBitmapExtension.get_bitmap_offset(s * TICK_ARRAY_SIZE * 7393, 1) == 13
    assert TickArrayBitmapExtension.get_bitmap_offset(-s * TICK_ARRAY_SIZE * 513, 1) == 0
    assert TickArrayBitmapExtension.get_bitmap_offset(-s * TICK_ARRAY_SIZE * 1024, 1) == 0
    assert TickArrayBitmapExtension.get_bitmap_offset(-s * TICK_ARRAY_SIZE * 1025, 1) == 1
    assert TickArrayBitmapExtension.get_bitmap_offset(-s * TICK_ARRAY_SIZE * 7394, 1) == 13


def test_get_bitmap_offset_rejects_invalid_start_index():
    with pytest.raises(ClmmError) as info:
        TickArrayBitmapExtension.get_bitmap_offset(TICK_ARRAY_SIZE * 512 + 1, 1)
    assert info.value.code is ErrorCode.INVALID_TICK_INDEX


def test_get_bitmap():
    extension = TickArrayBitmapExtension()
    with pytest.raises(ClmmError) as info:
        extension.get_bitmap(TICK_ARRAY_SIZE * 511, 1)
    assert info.value.code is ErrorCode.INVALID_TICK_ARRAY_BOUNDARY
    assert extension.get_bitmap(TICK_ARRAY_SIZE * 512, 1)[0] == 0
    assert extension.get_bitmap(TICK_ARRAY_SIZE * 1024, 1)[0] == 1
    with pytest.raises(ClmmError):
        extension.get_bitmap(-TICK_ARRAY_SIZE * 512, 1)
    assert extension.get_bitmap(-TICK_ARRAY_SIZE * 513, 1)[0] == 0


def test_check_extension_boundary_spacing_too_large():
    with pytest.raises(ClmmError) as info:
        TickArrayBitmapExtension.check_extension_boundary(0, 15)
    assert info.value.code is ErrorCode.REQUIRE_FAILED


def test_flip_tick_array_bit_spacing_one():
    ext = TickArrayBitmapExtension()
    s = 1
    starts = [
        s * TICK_ARRAY_SIZE * 512,
        s * TICK_ARRAY_SIZE * 513,
        s * TICK_ARRAY_SIZE * 7393,
        -s * TICK_ARRAY_SIZE * 513,
        -s * TICK_ARRAY_SIZE * 514,
        -s * TICK_ARRAY_SIZE * 1024,
        -s * TICK_ARRAY_SIZE * 7394,
    ]
    assert _initialized_flags(ext, s, starts) == [(False, i) for i in starts]
    _flip_all(ext, s, starts)
    assert _initialized_flags(ext, s, starts) == [(True, i) for i in starts]

    assert _bit(ext.positive_tick_array_bitmap[0], 0) is True
    assert _bit(ext.positive_tick_array_bitmap[0], 1) is True
    assert _bit(ext.positive_tick_array_bitmap[13], 225) is True
    assert _bit(ext.negative_tick_array_bitmap[0], 511) is True
    assert _bit(ext.negative_tick_array_bitmap[0], 510) is True
    assert _bit(ext.negative_tick_array_bitmap[0], 0) is True
    assert _bit(ext.negative_tick_array_bitmap[13], 286) is True

    flipped_back = [i for i in starts if i != -s * TICK_ARRAY_SIZE * 1024]
    _flip_all(ext, s, flipped_back)
    assert _initialized_flags(ext, s, flipped_back) == [(False, i) for i in flipped_back]
    assert ext.check_tick_array_is_initialized(-s * TICK_ARRAY_SIZE * 1024, s) == (
        True,
        -s * TICK_ARRAY_SIZE * 1024,
    )

    assert _bit(ext.positive_tick_array_bitmap[0], 0) is False
    assert _bit(ext.positive_tick_array_bitmap[0], 1) is False
    assert _bit(ext.positive_tick_array_bitmap[13], 225) is False
    assert _bit(ext.negative_tick_array_bitmap[0], 511) is False
    assert _bit(ext.negative_tick_array_bitmap[0], 510) is False
    assert _bit(ext.negative_tick_array_bitmap[13], 286) is False


def test_flip_tick_array_bit_spacing_three():
    ext = TickArrayBitmapExtension()
    s = 3
    starts = [
        s * TICK_ARRAY_SIZE * 512,
        s * TICK_ARRAY_SIZE * 2464,
        -s * TICK_ARRAY_SIZE * 513,
        -s * TICK_ARRAY_SIZE * 2465,
    ]
    _flip_all(ext, s, starts)
    assert _initialized_flags(ext, s, starts) == [(True, i) for i in starts]

    assert _bit(ext.positive_tick_array_bitmap[0], 0) is True
    assert _bit(ext.positive_tick_array_bitmap[3], 416) is True
    assert _bit(ext.negative_tick_array_bitmap[0], 511) is True
    assert _bit(ext.negative_tick_array_bitmap[3], 95) is True


def test_flip_tick_array_bit_spacing_ten():
    ext = TickArrayBitmapExtension()
    s = 10
    starts = [
        s * TICK_ARRAY_SIZE * 512,
        s * TICK_ARRAY_SIZE * 739,
        -s * TICK_ARRAY_SIZE * 513,
        -s * TICK_ARRAY_SIZE * 740,
    ]
    _flip_all(ext, s, starts)
    assert _initialized_flags(ext, s, starts) == [(True, i) for i in starts]

    assert _bit(ext.positive_tick_array_bitmap[0], 0) is True
    assert _bit(ext.positive_tick_array_bitmap[0], 227) is True
    assert _bit(ext.negative_tick_array_bitmap[0], 511) is True
    assert _bit(ext.negative_tick_array_bitmap[0], 284) is True


def test_check_tick_array_is_initialized():
    ext = TickArrayBitmapExtension()
    start = -TICK_ARRAY_SIZE * 1000
    assert ext.check_tick_array_is_initialized(start, 1) == (False, start)
    ext.flip_tick_array_bit(start, 1)
    assert ext.check_tick_array_is_initialized(start, 1) == (True, start)


def test_positive_next_initialized_tick_array_start_index():
    s = 1
    ext = TickArrayBitmapExtension()
    _flip_all(
        ext,
        s,
        [s * TICK_ARRAY_SIZE * 512, s * TICK_ARRAY_SIZE * 1000, s * TICK_ARRAY_SIZE * 7393],
    )
    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(s * TICK_ARRAY_SIZE * 511, s, False)
    assert nxt == s * TICK_ARRAY_SIZE * 512
    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(s * TICK_ARRAY_SIZE * 512, s, False)
    assert nxt == s * TICK_ARRAY_SIZE * 1000
    found, _ = ext.next_initialized_tick_array_from_one_bitmap(s * TICK_ARRAY_SIZE * 7393, s, False)
    assert found is False

    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(s * TICK_ARRAY_SIZE * 1001, s, True)
    assert nxt == s * TICK_ARRAY_SIZE * 1000
    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(s * TICK_ARRAY_SIZE * 1000, s, True)
    assert nxt == s * TICK_ARRAY_SIZE * 512

    with pytest.raises(ClmmError):
        ext.next_initialized_tick_array_from_one_bitmap(s * TICK_ARRAY_SIZE * 512, s, True)


def test_negative_next_initialized_tick_array_start_index():
    s = 1
    ext = TickArrayBitmapExtension()
    _flip_all(
        ext,
        s,
        [-s * TICK_ARRAY_SIZE * 513, -s * TICK_ARRAY_SIZE * 1000, -s * TICK_ARRAY_SIZE * 7394],
    )
    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(-s * TICK_ARRAY_SIZE * 1001, s, False)
    assert nxt == -s * TICK_ARRAY_SIZE * 1000
    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(-s * TICK_ARRAY_SIZE * 1000, s, False)
    assert nxt == -s * TICK_ARRAY_SIZE * 513
    with pytest.raises(ClmmError):
        ext.next_initialized_tick_array_from_one_bitmap(-s * TICK_ARRAY_SIZE * 513, s, False)

    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(-s * TICK_ARRAY_SIZE * 512, s, True)
    assert nxt == -s * TICK_ARRAY_SIZE * 513
    _, nxt = ext.next_initialized_tick_array_from_one_bitmap(-s * TICK_ARRAY_SIZE * 513, s, True)
    assert nxt == -s * TICK_ARRAY_SIZE * 1000
    found, _ = ext.next_initialized_tick_array_from_one_bitmap(-s * TICK_ARRAY_SIZE * 7394, s, True)
    assert found is False


def test_initialize_resets_bitmaps():
    ext = TickArrayBitmapExtension()
    ext.flip_tick_array_bit(TICK_ARRAY_SIZE * 512, 1)
    pool_id = bytes(range(32))
    ext.initialize(pool_id)
    assert ext.pool_id == pool_id
    assert ext.check_tick_array_is_initialized(TICK_ARRAY_SIZE * 512, 1) == (
        False,
        TICK_ARRAY_SIZE * 512,
    )


def test_bitmap_extension_layout():
    pool_id = bytes(range(1, 33))
    positive = [[0] * 8 for _ in range(EXTENSION_TICKARRAY_BITMAP_SIZE)]
    negative = [[0] * 8 for _ in range(EXTENSION_TICKARRAY_BITMAP_SIZE)]
    data = bytearray(DISCRIMINATOR)
    data += pool_id
    init_data = (1 << 64) - 1
    for bitmaps in (positive, negative):
        for i in range(EXTENSION_TICKARRAY_BITMAP_SIZE):
            for j in range(8):
                init_data -= 1
                bitmaps[i][j] = init_data
                data += init_data.to_bytes(8, "little")

    assert len(data) == TickArrayBitmapExtension.LEN == 1832
    unpacked = TickArrayBitmapExtension.from_bytes(bytes(data))
    assert unpacked.pool_id == pool_id
    assert unpacked.positive_tick_array_bitmap == positive
    assert unpacked.negative_tick_array_bitmap == negative
    assert unpacked.to_bytes() == bytes(data)


def test_from_bytes_rejects_wrong_discriminator():
    data = bytearray(TickArrayBitmapExtension().to_bytes())
    data[0] ^= 0xFF
    with pytest.raises(ValueError):
        TickArrayBitmapExtension.from_bytes(bytes(data))


def test_from_bytes_rejects_wrong_length():
    with pytest.raises(ValueError):
        TickArrayBitmapExtension.from_bytes(bytes(100))