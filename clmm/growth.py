"""Fee and reward growth accumulated between two ticks."""

from __future__ import annotations

from typing import Sequence

from clmm.tick import REWARD_NUM, U128_MAX, RewardInfo, TickState

_U128_MOD = U128_MAX + 1


def _checked_sub(a: int, b: int) -> int:
    result = a - b
    if result < 0:
        raise OverflowError(f"u128 subtraction underflow: {a} - {b}")
    return result


def _wrapping_sub(a: int, b: int) -> int:
    return (a - b) % _U128_MOD


def _below(outside: int, global_growth: int, tick_current: int, tick_lower: int) -> int:
    if tick_current >= tick_lower:
        return outside
    return _checked_sub(global_growth, outside)


def _above(outside: int, global_growth: int, tick_current: int, tick_upper: int) -> int:
    if tick_current < tick_upper:
        return outside
    return _checked_sub(global_growth, outside)


def get_fee_growth_inside(
    tick_lower: TickState,
    tick_upper: TickState,
    tick_current: int,
    fee_growth_global_0_x64: int,
    fee_growth_global_1_x64: int,
) -> tuple[int, int]:
    """Return the fee growth of both tokens between the lower and upper ticks.

    ``inside = global - below(lower) - above(upper)``, wrapping modulo 2**128.
    """
    below_0 = _below(
        tick_lower.fee_growth_outside_0_x64, fee_growth_global_0_x64, tick_current, tick_lower.tick
    )
    below_1 = _below(
        tick_lower.fee_growth_outside_1_x64, fee_growth_global_1_x64, tick_current, tick_lower.tick
    )
    above_0 = _above(
        tick_upper.fee_growth_outside_0_x64, fee_growth_global_0_x64, tick_current, tick_upper.tick
    )
    above_1 = _above(
        tick_upper.fee_growth_outside_1_x64, fee_growth_global_1_x64, tick_current, tick_upper.tick
    )
    inside_0 = _wrapping_sub(_wrapping_sub(fee_growth_global_0_x64, below_0), above_0)
    inside_1 = _wrapping_sub(_wrapping_sub(fee_growth_global_1_x64, below_1), above_1)
    return inside_0, inside_1


def get_reward_growths_inside(
    tick_lower: TickState,
    tick_upper: TickState,
    tick_current_index: int,
    reward_infos: Sequence[RewardInfo],
) -> list[int]:
    """Return the reward growth between the ticks for each reward slot.

    Slots whose reward is not initialized stay at zero.
    """
    inside = [0] * REWARD_NUM
    for i, info in enumerate(reward_infos[:REWARD_NUM]):
        if not info.initialized():
            continue
        global_growth = info.reward_growth_global_x64
        below = _below(
            tick_lower.reward_growths_outside_x64[i],
            global_growth,
            tick_current_index,
            tick_lower.tick,
        )
        above = _above(
            tick_upper.reward_growths_outside_x64[i],
            global_growth,
            tick_current_index,
            tick_upper.tick,
        )
        inside[i] = _wrapping_sub(_wrapping_sub(global_growth, below), above)
    return inside