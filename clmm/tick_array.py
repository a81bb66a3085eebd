"""Fixed-size arrays of ticks and the index arithmetic around them."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from clmm.epoch import get_recent_epoch
from clmm.tick import (
    DEFAULT_PUBKEY,
    MAX_TICK,
    MIN_TICK,
    PUBKEY_LEN,
    ClmmError,
    ErrorCode,
    TickState,
)

TICK_ARRAY_SEED = "tick_array"
TICK_ARRAY_SIZE = 60
TICK_ARRAY_PADDING_LEN = 107
DISCRIMINATOR_LEN = 8
DISCRIMINATOR = hashlib.sha256(b"account:TickArrayState").digest()[:DISCRIMINATOR_LEN]
U8_MAX = 0xFF


def _default_ticks() -> list[TickState]:
    return [TickState() for _ in range(TICK_ARRAY_SIZE)]


def _default_padding() -> bytes:
    return bytes(TICK_ARRAY_PADDING_LEN)


@dataclass
class TickArrayState:
    """A run of ``TICK_ARRAY_SIZE`` consecutive ticks belonging to one pool."""

    pool_id: bytes = DEFAULT_PUBKEY
    start_tick_index: int = 0
    ticks: list[TickState] = field(default_factory=_default_ticks)
    initialized_tick_count: int = 0
    recent_epoch: int = 0
    padding: bytes = field(default_factory=_default_padding)

    LEN = DISCRIMINATOR_LEN + PUBKEY_LEN + 4 + TickState.LEN * TICK_ARRAY_SIZE + 1 + 115

    def initialize(self, start_index: int, tick_spacing: int, pool_key: bytes) -> None:
        """Set up a freshly created tick array."""
        self.start_tick_index = start_index
        self.pool_id = bytes(pool_key)
        self.recent_epoch = get_recent_epoch()

    def update_initialized_tick_count(self, add: bool) -> None:
        count = self.initialized_tick_count + (1 if add else -1)
        if not 0 <= count <= U8_MAX:
            raise OverflowError(f"initialized tick count out of range: {count}")
        self.initialized_tick_count = count

    def get_tick_state(self, tick_index: int, tick_spacing: int) -> TickState:
        """Return the (mutable) tick state holding ``tick_index``."""
        return self.ticks[self.get_tick_offset_in_array(tick_index, tick_spacing)]

    def update_tick_state(self, tick_index: int, tick_spacing: int, tick_state: TickState) -> None:
        offset = self.get_tick_offset_in_array(tick_index, tick_spacing)
        self.ticks[offset] = tick_state
        self.recent_epoch = get_recent_epoch()

    def get_tick_offset_in_array(self, tick_index: int, tick_spacing: int) -> int:
        """Return the slot of ``tick_index``; raise if it lies outside this array."""
        start = TickArrayState.get_array_start_index(tick_index, tick_spacing)
        if start != self.start_tick_index:
            raise ClmmError(
                ErrorCode.INVALID_TICK_ARRAY,
                f"left: {start}, right: {self.start_tick_index}",
            )
        return (tick_index - self.start_tick_index) // tick_spacing

    def first_initialized_tick(self, zero_for_one: bool) -> TickState:
        """Return the first initialized tick in the swap direction."""
        candidates = reversed(self.ticks) if zero_for_one else iter(self.ticks)
        for tick in candidates:
            if tick.is_initialized():
                return tick
        raise ClmmError(ErrorCode.INVALID_TICK_ARRAY)

    def next_initialized_tick(
        self, current_tick_index: int, tick_spacing: int, zero_for_one: bool
    ) -> TickState | None:
        """Find the next initialized tick at or left of (or strictly right of) the current tick."""
        start = TickArrayState.get_array_start_index(current_tick_index, tick_spacing)
        if start != self.start_tick_index:
            return None
        offset = (current_tick_index - self.start_tick_index) // tick_spacing
        if zero_for_one:
            candidates = reversed(self.ticks[: offset + 1])
        else:
            candidates = iter(self.ticks[offset + 1 :])
        return next((tick for tick in candidates if tick.is_initialized()), None)

    def next_tick_array_start_index(self, tick_spacing: int, zero_for_one: bool) -> int:
        ticks_in_array = TickArrayState.tick_count(tick_spacing)
        if zero_for_one:
            return self.start_tick_index - ticks_in_array
        return self.start_tick_index + ticks_in_array

    @staticmethod
    def get_array_start_index(tick_index: int, tick_spacing: int) -> int:
        """Return the start index of the tick array containing ``tick_index``."""
        ticks_in_array = TickArrayState.tick_count(tick_spacing)
        return (tick_index // ticks_in_array) * ticks_in_array

    @staticmethod
    def check_is_valid_start_index(tick_index: int, tick_spacing: int) -> bool:
        if TickState.check_is_out_of_boundary(tick_index):
            if tick_index > MAX_TICK:
                return False
            return tick_index == TickArrayState.get_array_start_index(MIN_TICK, tick_spacing)
        return tick_index % TickArrayState.tick_count(tick_spacing) == 0

    @staticmethod
    def tick_count(tick_spacing: int) -> int:
        return TICK_ARRAY_SIZE * tick_spacing

    def to_bytes(self) -> bytes:
        """Serialize to the account layout, discriminator included."""
        if len(self.ticks) != TICK_ARRAY_SIZE:
            raise ValueError(f"tick array holds {len(self.ticks)} ticks, expected {TICK_ARRAY_SIZE}")
        parts = [
            DISCRIMINATOR,
            bytes(self.pool_id),
            self.start_tick_index.to_bytes(4, "little", signed=True),
        ]
        parts.extend(tick.to_bytes() for tick in self.ticks)
        parts.append(self.initialized_tick_count.to_bytes(1, "little"))
        parts.append(self.recent_epoch.to_bytes(8, "little"))
        parts.append(bytes(self.padding))
        return b"".join(parts)

    @staticmethod
    def from_bytes(data: bytes) -> TickArrayState:
        """Parse the account layout, checking length and discriminator."""
        if len(data) != TickArrayState.LEN:
            raise ValueError(f"tick array needs {TickArrayState.LEN} bytes, got {len(data)}")
        view = memoryview(data)
        if bytes(view[:DISCRIMINATOR_LEN]) != DISCRIMINATOR:
            raise ValueError("account discriminator mismatch")
        pos = DISCRIMINATOR_LEN
        pool_id = bytes(view[pos : pos + PUBKEY_LEN])
        pos += PUBKEY_LEN
        start_tick_index = int.from_bytes(view[pos : pos + 4], "little", signed=True)
        pos += 4
        ticks = []
        for _ in range(TICK_ARRAY_SIZE):
            ticks.append(TickState.from_bytes(bytes(view[pos : pos + TickState.LEN])))
            pos += TickState.LEN
        initialized_tick_count = view[pos]
        pos += 1
        recent_epoch = int.from_bytes(view[pos : pos + 8], "little")
        pos += 8
        padding = bytes(view[pos : pos + TICK_ARRAY_PADDING_LEN])
        return TickArrayState(
            pool_id=pool_id,
            start_tick_index=start_tick_index,
            ticks=ticks,
            initialized_tick_count=initialized_tick_count,
            recent_epoch=recent_epoch,
            padding=padding,
        )


def check_tick_array_start_index(
    tick_array_start_index: int, tick_index: int, tick_spacing: int
) -> None:
    """Raise unless ``tick_index`` is valid and lives in the given tick array."""
    if tick_index < MIN_TICK:
        raise ClmmError(ErrorCode.TICK_LOWER_OVERFLOW)
    if tick_index > MAX_TICK:
        raise ClmmError(ErrorCode.TICK_UPPER_OVERFLOW)
    if tick_index % tick_spacing != 0:
        raise ClmmError(ErrorCode.REQUIRE_FAILED, f"tick {tick_index} not a multiple of {tick_spacing}")
    expected = TickArrayState.get_array_start_index(tick_index, tick_spacing)
    if tick_array_start_index != expected:
        raise ClmmError(
            ErrorCode.REQUIRE_FAILED,
            f"left: {tick_array_start_index}, right: {expected}",
        )