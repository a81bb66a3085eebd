"""Tick state, reward info and the errors shared by the pool state code."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Sequence

MIN_TICK = -443636
MAX_TICK = -MIN_TICK
REWARD_NUM = 3
TICK_PADDING_LEN = 13

U128_MAX = (1 << 128) - 1
I128_MIN = -(1 << 127)
I128_MAX = (1 << 127) - 1
U32_MAX = (1 << 32) - 1
PUBKEY_LEN = 32
DEFAULT_PUBKEY = bytes(PUBKEY_LEN)


class ErrorCode(enum.Enum):
    """Errors raised by the pool state code."""

    INVALID_TICK_INDEX = "Tick out of range"
    TICK_AND_SPACING_NOT_MATCH = "tick % tick_spacing must be zero"
    TICK_INVALID_ORDER = "The lower tick must be below the upper tick"
    TICK_LOWER_OVERFLOW = "The tick must be greater, or equal to the minimum tick(-443636)"
    TICK_UPPER_OVERFLOW = "The tick must be lesser than, or equal to the maximum tick(443636)"
    INVALID_TICK_ARRAY = "Invalid tick array account"
    INVALID_TICK_ARRAY_BOUNDARY = "Invalid tick array boundary"
    LIQUIDITY_SUB_VALUE_ERR = "Liquidity sub delta L must be smaller than before"
    LIQUIDITY_ADD_VALUE_ERR = "Liquidity add delta L must be greater, or equal to before"
    REQUIRE_FAILED = "A requirement was violated"


class ClmmError(Exception):
    """An error carrying an :class:`ErrorCode`."""

    def __init__(self, code: ErrorCode, detail: str | None = None):
        self.code = code
        message = code.value if detail is None else f"{code.value}: {detail}"
        super().__init__(message)


def _checked_sub_u128(a: int, b: int) -> int:
    result = a - b
    if result < 0:
        raise OverflowError(f"u128 subtraction underflow: {a} - {b}")
    return result


def _checked_i128(value: int) -> int:
    if not I128_MIN <= value <= I128_MAX:
        raise OverflowError(f"i128 overflow: {value}")
    return value


def add_delta(x: int, y: int) -> int:
    """Add a signed liquidity delta to an unsigned liquidity amount."""
    if y < 0:
        result = x + y
        if result < 0:
            raise ClmmError(ErrorCode.LIQUIDITY_SUB_VALUE_ERR)
        return result
    result = x + y
    if result > U128_MAX:
        raise ClmmError(ErrorCode.LIQUIDITY_ADD_VALUE_ERR)
    return result


def check_ticks_order(tick_lower_index: int, tick_upper_index: int) -> None:
    """Raise unless the lower tick lies strictly below the upper tick."""
    if tick_lower_index >= tick_upper_index:
        raise ClmmError(ErrorCode.TICK_INVALID_ORDER)


@dataclass
class RewardInfo:
    """The part of a pool reward slot that tick accounting depends on."""

    token_mint: bytes = DEFAULT_PUBKEY
    reward_growth_global_x64: int = 0

    def initialized(self) -> bool:
        return self.token_mint != DEFAULT_PUBKEY


def _reward_growths(reward_infos: Sequence[RewardInfo]) -> list[int]:
    return [info.reward_growth_global_x64 for info in reward_infos]


def _zero_rewards() -> list[int]:
    return [0] * REWARD_NUM


def _zero_padding() -> list[int]:
    return [0] * TICK_PADDING_LEN


@dataclass
class TickState:
    """Liquidity and growth bookkeeping for a single tick."""

    tick: int = 0
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_0_x64: int = 0
    fee_growth_outside_1_x64: int = 0
    reward_growths_outside_x64: list[int] = field(default_factory=_zero_rewards)
    padding: list[int] = field(default_factory=_zero_padding)

    LEN = 4 + 16 * 4 + 16 * REWARD_NUM + 4 * TICK_PADDING_LEN

    def initialize(self, tick: int, tick_spacing: int) -> None:
        if TickState.check_is_out_of_boundary(tick):
            raise ClmmError(ErrorCode.INVALID_TICK_INDEX)
        if tick % tick_spacing != 0:
            raise ClmmError(ErrorCode.TICK_AND_SPACING_NOT_MATCH)
        self.tick = tick

    def update(
        self,
        tick_current: int,
        liquidity_delta: int,
        fee_growth_global_0_x64: int,
        fee_growth_global_1_x64: int,
        upper: bool,
        reward_infos: Sequence[RewardInfo],
    ) -> bool:
        """Apply a liquidity change; return True if the tick flipped initialized state."""
        gross_before = self.liquidity_gross
        gross_after = add_delta(gross_before, liquidity_delta)
        flipped = (gross_after == 0) != (gross_before == 0)

        if gross_before == 0 and self.tick <= tick_current:
            # All growth before initialization is assumed to have happened below the tick.
            self.fee_growth_outside_0_x64 = fee_growth_global_0_x64
            self.fee_growth_outside_1_x64 = fee_growth_global_1_x64
            self.reward_growths_outside_x64 = _reward_growths(reward_infos)

        self.liquidity_gross = gross_after
        if upper:
            self.liquidity_net = _checked_i128(self.liquidity_net - liquidity_delta)
        else:
            self.liquidity_net = _checked_i128(self.liquidity_net + liquidity_delta)
        return flipped

    def cross(
        self,
        fee_growth_global_0_x64: int,
        fee_growth_global_1_x64: int,
        reward_infos: Sequence[RewardInfo],
    ) -> int:
        """Flip the outside growths on price crossing; return the net liquidity."""
        self.fee_growth_outside_0_x64 = _checked_sub_u128(
            fee_growth_global_0_x64, self.fee_growth_outside_0_x64
        )
        self.fee_growth_outside_1_x64 = _checked_sub_u128(
            fee_growth_global_1_x64, self.fee_growth_outside_1_x64
        )
        for i, info in enumerate(reward_infos[:REWARD_NUM]):
            if not info.initialized():
                continue
            self.reward_growths_outside_x64[i] = _checked_sub_u128(
                info.reward_growth_global_x64, self.reward_growths_outside_x64[i]
            )
        return self.liquidity_net

    def clear(self) -> None:
        self.liquidity_net = 0
        self.liquidity_gross = 0
        self.fee_growth_outside_0_x64 = 0
        self.fee_growth_outside_1_x64 = 0
        self.reward_growths_outside_x64 = _zero_rewards()

    def is_initialized(self) -> bool:
        return self.liquidity_gross != 0

    @staticmethod
    def check_is_out_of_boundary(tick: int) -> bool:
        return tick < MIN_TICK or tick > MAX_TICK

    def to_bytes(self) -> bytes:
        """Serialize to the packed little-endian account layout."""
        parts = [
            self.tick.to_bytes(4, "little", signed=True),
            self.liquidity_net.to_bytes(16, "little", signed=True),
            self.liquidity_gross.to_bytes(16, "little"),
            self.fee_growth_outside_0_x64.to_bytes(16, "little"),
            self.fee_growth_outside_1_x64.to_bytes(16, "little"),
        ]
        parts.extend(v.to_bytes(16, "little") for v in self.reward_growths_outside_x64)
        parts.extend(v.to_bytes(4, "little") for v in self.padding)
        return b"".join(parts)

    @staticmethod
    def from_bytes(data: bytes) -> TickState:
        """Parse the packed little-endian account layout."""
        if len(data) != TickState.LEN:
            raise ValueError(f"tick state needs {TickState.LEN} bytes, got {len(data)}")
        view = memoryview(data)
        pos = 0

        def take(size: int, signed: bool = False) -> int:
            nonlocal pos
            value = int.from_bytes(view[pos : pos + size], "little", signed=signed)
            pos += size
            return value

        tick = take(4, signed=True)
        liquidity_net = take(16, signed=True)
        liquidity_gross = take(16)
        fee_0 = take(16)
        fee_1 = take(16)
        rewards = [take(16) for _ in range(REWARD_NUM)]
        padding = [take(4) for _ in range(TICK_PADDING_LEN)]
        return TickState(
            tick=tick,
            liquidity_net=liquidity_net,
            liquidity_gross=liquidity_gross,
            fee_growth_outside_0_x64=fee_0,
            fee_growth_outside_1_x64=fee_1,
            reward_growths_outside_x64=rewards,
            padding=padding,
        )