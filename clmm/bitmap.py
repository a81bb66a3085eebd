"""Bit arithmetic for 512-bit tick array bitmaps."""

from __future__ import annotations

from typing import Sequence, Union

from clmm.tick_array import TickArrayState

TICK_ARRAY_BITMAP_SIZE = 512
BITMAP_WORDS = 8
WORD_BITS = 64
_WORD_MASK = (1 << WORD_BITS) - 1
_BITMAP_MASK = (1 << TICK_ARRAY_BITMAP_SIZE) - 1

Bitmap = Union[int, Sequence[int]]


def _as_int(tickarray_bitmap: Bitmap) -> int:
    """Turn a bitmap given as an int or as eight little-endian u64 words into an int."""
    if isinstance(tickarray_bitmap, int):
        if not 0 <= tickarray_bitmap <= _BITMAP_MASK:
            raise ValueError("bitmap must fit in 512 unsigned bits")
        return tickarray_bitmap
    words = list(tickarray_bitmap)
    if len(words) != BITMAP_WORDS:
        raise ValueError(f"bitmap needs {BITMAP_WORDS} words, got {len(words)}")
    value = 0
    for shift, word in enumerate(words):
        if not 0 <= word <= _WORD_MASK:
            raise ValueError(f"bitmap word out of u64 range: {word}")
        value |= word << (shift * WORD_BITS)
    return value


def max_tick_in_tickarray_bitmap(tick_spacing: int) -> int:
    """Return the number of ticks covered by one 512-bit bitmap."""
    return TickArrayState.tick_count(tick_spacing) * TICK_ARRAY_BITMAP_SIZE


def get_bitmap_tick_boundary(tick_array_start_index: int, tick_spacing: int) -> tuple[int, int]:
    """Return the (min, max) tick boundary of the bitmap holding the tick array."""
    ticks_in_one_bitmap = max_tick_in_tickarray_bitmap(tick_spacing)
    magnitude = abs(tick_array_start_index)
    m = magnitude // ticks_in_one_bitmap
    if tick_array_start_index < 0 and magnitude % ticks_in_one_bitmap != 0:
        m += 1
    min_value = ticks_in_one_bitmap * m
    if tick_array_start_index < 0:
        return -min_value, -min_value + ticks_in_one_bitmap
    return min_value, min_value + ticks_in_one_bitmap


def tick_array_offset_in_bitmap(tick_array_start_index: int, tick_spacing: int) -> int:
    """Return the bit position of a tick array inside its bitmap."""
    m = abs(tick_array_start_index) % max_tick_in_tickarray_bitmap(tick_spacing)
    offset = m // TickArrayState.tick_count(tick_spacing)
    if tick_array_start_index < 0 and m != 0:
        offset = TICK_ARRAY_BITMAP_SIZE - offset
    return offset


def next_initialized_tick_array_in_bitmap(
    tickarray_bitmap: Bitmap,
    next_tick_array_start_index: int,
    tick_spacing: int,
    zero_for_one: bool,
) -> tuple[bool, int]:
    """Search one bitmap for the next initialized tick array in the swap direction.

    Returns ``(True, start_index)`` when found, otherwise ``(False, boundary)``.
    """
    bitmap = _as_int(tickarray_bitmap)
    min_boundary, max_boundary = get_bitmap_tick_boundary(next_tick_array_start_index, tick_spacing)
    offset = tick_array_offset_in_bitmap(next_tick_array_start_index, tick_spacing)
    tick_count = TickArrayState.tick_count(tick_spacing)

    if zero_for_one:
        shifted = (bitmap << (TICK_ARRAY_BITMAP_SIZE - 1 - offset)) & _BITMAP_MASK
        if shifted == 0:
            return False, min_boundary
        leading_zeros = TICK_ARRAY_BITMAP_SIZE - shifted.bit_length()
        return True, next_tick_array_start_index - leading_zeros * tick_count

    shifted = bitmap >> offset
    if shifted == 0:
        return False, max_boundary - tick_count
    trailing_zeros = (shifted & -shifted).bit_length() - 1
    return True, next_tick_array_start_index + trailing_zeros * tick_count