"""Pool-level liquidity positions over a tick range."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from clmm.epoch import get_recent_epoch
from clmm.tick import (
    DEFAULT_PUBKEY,
    MAX_TICK,
    MIN_TICK,
    REWARD_NUM,
    U128_MAX,
    ClmmError,
    ErrorCode,
    add_delta,
)

POSITION_SEED = "position"
Q64 = 1 << 64
U64_MAX = (1 << 64) - 1


def _zero_rewards() -> list[int]:
    return [0] * REWARD_NUM


def _zero_padding() -> list[int]:
    return [0] * 7


def _owed(fee_growth_inside: int, fee_growth_last: int, liquidity: int) -> int:
    delta = max(fee_growth_inside - fee_growth_last, 0)
    value = delta * liquidity // Q64
    if value > U128_MAX:
        raise OverflowError(f"fee owed exceeds u128: {value}")
    # Amounts that do not fit in a u64 are dropped.
    return value if value < U64_MAX else 0


@dataclass
class ProtocolPositionState:
    """Liquidity and fee bookkeeping the pool keeps for a tick range."""

    bump: int = 0
    pool_id: bytes = DEFAULT_PUBKEY
    tick_lower_index: int = 0
    tick_upper_index: int = 0
    liquidity: int = 0
    fee_growth_inside_0_last_x64: int = 0
    fee_growth_inside_1_last_x64: int = 0
    token_fees_owed_0: int = 0
    token_fees_owed_1: int = 0
    reward_growth_inside: list[int] = field(default_factory=_zero_rewards)
    recent_epoch: int = 0
    padding: list[int] = field(default_factory=_zero_padding)

    LEN = 8 + 1 + 32 + 4 + 4 + 16 + 16 + 16 + 8 + 8 + 16 * REWARD_NUM + 64

    def update(
        self,
        tick_lower_index: int,
        tick_upper_index: int,
        liquidity_delta: int,
        fee_growth_inside_0_x64: int,
        fee_growth_inside_1_x64: int,
        reward_growths_inside: Sequence[int],
    ) -> None:
        """Apply a liquidity change and accrue fees earned since the last update."""
        if self.liquidity == 0 and liquidity_delta == 0:
            return
        if not MIN_TICK <= tick_lower_index <= MAX_TICK:
            raise ClmmError(ErrorCode.TICK_LOWER_OVERFLOW)
        if not MIN_TICK <= tick_upper_index <= MAX_TICK:
            raise ClmmError(ErrorCode.TICK_UPPER_OVERFLOW)

        owed_0 = _owed(fee_growth_inside_0_x64, self.fee_growth_inside_0_last_x64, self.liquidity)
        owed_1 = _owed(fee_growth_inside_1_x64, self.fee_growth_inside_1_last_x64, self.liquidity)

        self.liquidity = add_delta(self.liquidity, liquidity_delta)
        self.fee_growth_inside_0_last_x64 = fee_growth_inside_0_x64
        self.fee_growth_inside_1_last_x64 = fee_growth_inside_1_x64
        self.tick_lower_index = tick_lower_index
        self.tick_upper_index = tick_upper_index
        if owed_0 > 0 or owed_1 > 0:
            total_0 = self.token_fees_owed_0 + owed_0
            total_1 = self.token_fees_owed_1 + owed_1
            if total_0 > U64_MAX or total_1 > U64_MAX:
                raise OverflowError("fees owed exceed u64")
            self.token_fees_owed_0 = total_0
            self.token_fees_owed_1 = total_1
        self.update_reward_growths_inside(reward_growths_inside)
        self.recent_epoch = get_recent_epoch()

    def update_reward_growths_inside(self, reward_growths_inside: Sequence[int]) -> None:
        """Record the reward growths; owed rewards are computed per personal position."""
        self.reward_growth_inside = list(reward_growths_inside)