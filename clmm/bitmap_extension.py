"""Bitmap extension tracking tick arrays far from the price origin."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from clmm.bitmap import (
    BITMAP_WORDS,
    WORD_BITS,
    max_tick_in_tickarray_bitmap,
    next_initialized_tick_array_in_bitmap,
    tick_array_offset_in_bitmap,
)
from clmm.tick import DEFAULT_PUBKEY, MAX_TICK, MIN_TICK, PUBKEY_LEN, ClmmError, ErrorCode
from clmm.tick_array import TickArrayState

EXTENSION_TICKARRAY_BITMAP_SIZE = 14
DISCRIMINATOR_LEN = 8
DISCRIMINATOR = hashlib.sha256(b"account:TickArrayBitmapExtension").digest()[:DISCRIMINATOR_LEN]
_WORD_MASK = (1 << WORD_BITS) - 1


def _empty_bitmaps() -> list[list[int]]:
    return [[0] * BITMAP_WORDS for _ in range(EXTENSION_TICKARRAY_BITMAP_SIZE)]


def _words_to_int(words: list[int]) -> int:
    return sum(word << (i * WORD_BITS) for i, word in enumerate(words))


def _int_to_words(value: int) -> list[int]:
    return [(value >> (i * WORD_BITS)) & _WORD_MASK for i in range(BITMAP_WORDS)]


@dataclass
class TickArrayBitmapExtension:
    """Initialized-state bits for tick arrays outside the pool's own bitmap."""

    pool_id: bytes = DEFAULT_PUBKEY
    positive_tick_array_bitmap: list[list[int]] = field(default_factory=_empty_bitmaps)
    negative_tick_array_bitmap: list[list[int]] = field(default_factory=_empty_bitmaps)

    LEN = DISCRIMINATOR_LEN + PUBKEY_LEN + 64 * EXTENSION_TICKARRAY_BITMAP_SIZE * 2

    def initialize(self, pool_id: bytes) -> None:
        self.pool_id = bytes(pool_id)
        self.positive_tick_array_bitmap = _empty_bitmaps()
        self.negative_tick_array_bitmap = _empty_bitmaps()

    @staticmethod
    def get_bitmap_offset(tick_index: int, tick_spacing: int) -> int:
        """Return which of the extension's bitmaps holds the tick array."""
        if not TickArrayState.check_is_valid_start_index(tick_index, tick_spacing):
            raise ClmmError(ErrorCode.INVALID_TICK_INDEX)
        TickArrayBitmapExtension.check_extension_boundary(tick_index, tick_spacing)
        ticks_in_one_bitmap = max_tick_in_tickarray_bitmap(tick_spacing)
        magnitude = abs(tick_index)
        offset = magnitude // ticks_in_one_bitmap - 1
        if tick_index < 0 and magnitude % ticks_in_one_bitmap == 0:
            offset -= 1
        return offset

    def get_bitmap(self, tick_index: int, tick_spacing: int) -> tuple[int, list[int]]:
        """Return the offset and a copy of the bitmap the tick array belongs to."""
        offset = TickArrayBitmapExtension.get_bitmap_offset(tick_index, tick_spacing)
        bitmaps = self.negative_tick_array_bitmap if tick_index < 0 else self.positive_tick_array_bitmap
        return offset, list(bitmaps[offset])

    @staticmethod
    def check_extension_boundary(tick_index: int, tick_spacing: int) -> None:
        """Raise unless the tick lies in the range covered by the extension."""
        positive_boundary = max_tick_in_tickarray_bitmap(tick_spacing)
        negative_boundary = -positive_boundary
        if not MAX_TICK > positive_boundary:
            raise ClmmError(ErrorCode.REQUIRE_FAILED, f"left: {MAX_TICK}, right: {positive_boundary}")
        if not negative_boundary > MIN_TICK:
            raise ClmmError(ErrorCode.REQUIRE_FAILED, f"left: {negative_boundary}, right: {MIN_TICK}")
        if negative_boundary <= tick_index < positive_boundary:
            raise ClmmError(ErrorCode.INVALID_TICK_ARRAY_BOUNDARY)

    def check_tick_array_is_initialized(
        self, tick_array_start_index: int, tick_spacing: int
    ) -> tuple[bool, int]:
        _, words = self.get_bitmap(tick_array_start_index, tick_spacing)
        bit = tick_array_offset_in_bitmap(tick_array_start_index, tick_spacing)
        initialized = bool((_words_to_int(words) >> bit) & 1)
        return initialized, tick_array_start_index

    def flip_tick_array_bit(self, tick_array_start_index: int, tick_spacing: int) -> None:
        """Toggle the initialized bit of the tick array."""
        offset, words = self.get_bitmap(tick_array_start_index, tick_spacing)
        bit = tick_array_offset_in_bitmap(tick_array_start_index, tick_spacing)
        flipped = _int_to_words(_words_to_int(words) ^ (1 << bit))
        if tick_array_start_index < 0:
            self.negative_tick_array_bitmap[offset] = flipped
        else:
            self.positive_tick_array_bitmap[offset] = flipped

    def next_initialized_tick_array_from_one_bitmap(
        self, last_tick_array_start_index: int, tick_spacing: int, zero_for_one: bool
    ) -> tuple[bool, int]:
        """Search the bitmap after the given tick array in the swap direction.

        Returns ``(True, start_index)`` when found, otherwise ``(False, boundary)``.
        """
        multiplier = TickArrayState.tick_count(tick_spacing)
        if zero_for_one:
            next_start = last_tick_array_start_index - multiplier
        else:
            next_start = last_tick_array_start_index + multiplier
        min_start = TickArrayState.get_array_start_index(MIN_TICK, tick_spacing)
        max_start = TickArrayState.get_array_start_index(MAX_TICK, tick_spacing)
        if next_start < min_start or next_start > max_start:
            return False, next_start
        _, words = self.get_bitmap(next_start, tick_spacing)
        return next_initialized_tick_array_in_bitmap(words, next_start, tick_spacing, zero_for_one)

    def to_bytes(self) -> bytes:
        """Serialize to the account layout, discriminator included."""
        parts = [DISCRIMINATOR, bytes(self.pool_id)]
        for bitmaps in (self.positive_tick_array_bitmap, self.negative_tick_array_bitmap):
            if len(bitmaps) != EXTENSION_TICKARRAY_BITMAP_SIZE:
                raise ValueError(f"expected {EXTENSION_TICKARRAY_BITMAP_SIZE} bitmaps, got {len(bitmaps)}")
            for words in bitmaps:
                parts.extend(word.to_bytes(8, "little") for word in words)
        return b"".join(parts)

    @staticmethod
    def from_bytes(data: bytes) -> TickArrayBitmapExtension:
        """Parse the account layout, checking length and discriminator."""
        if len(data) != TickArrayBitmapExtension.LEN:
            raise ValueError(
                f"bitmap extension needs {TickArrayBitmapExtension.LEN} bytes, got {len(data)}"
            )
        view = memoryview(data)
        if bytes(view[:DISCRIMINATOR_LEN]) != DISCRIMINATOR:
            raise ValueError("account discriminator mismatch")
        pos = DISCRIMINATOR_LEN
        pool_id = bytes(view[pos : pos + PUBKEY_LEN])
        pos += PUBKEY_LEN

        def read_bitmaps() -> list[list[int]]:
            nonlocal pos
            bitmaps = []
            for _ in range(EXTENSION_TICKARRAY_BITMAP_SIZE):
                words = []
                for _ in range(BITMAP_WORDS):
                    words.append(int.from_bytes(view[pos : pos + 8], "little"))
                    pos += 8
                bitmaps.append(words)
            return bitmaps

        positive = read_bitmaps()
        negative = read_bitmaps()
        return TickArrayBitmapExtension(
            pool_id=pool_id,
            positive_tick_array_bitmap=positive,
            negative_tick_array_bitmap=negative,
        )