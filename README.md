# clmm

State logic for a concentrated-liquidity market maker, in pure Python with no
runtime dependencies.

## Modules

- `clmm.tick`: `TickState` (one tick's liquidity and fee/reward growth
  bookkeeping, with `initialize`, `update`, `cross`, `clear`, `is_initialized`
  and a packed byte layout via `to_bytes` / `from_bytes`), `RewardInfo`,
  `add_delta` for applying a signed liquidity delta, `check_ticks_order`, and
  the `ClmmError` exception with its `ErrorCode`.
- `clmm.tick_array`: `TickArrayState`, a fixed array of 60 ticks, with
  start-index arithmetic (`get_array_start_index`, `check_is_valid_start_index`,
  `tick_count`, `next_tick_array_start_index`), tick lookups
  (`get_tick_state`, `first_initialized_tick`, `next_initialized_tick`), and a
  byte layout with an 8-byte discriminator (`to_bytes` / `from_bytes`).
  `check_tick_array_start_index` validates a tick against a tick array.
- `clmm.growth`: `get_fee_growth_inside` and `get_reward_growths_inside`, the
  growth accumulated between a lower and an upper tick.
- `clmm.bitmap`: arithmetic on 512-bit tick array bitmaps
  (`max_tick_in_tickarray_bitmap`, `get_bitmap_tick_boundary`,
  `tick_array_offset_in_bitmap`, `next_initialized_tick_array_in_bitmap`).
  A bitmap is given either as an int or as eight little-endian u64 words.
- `clmm.bitmap_extension`: `TickArrayBitmapExtension`, which tracks
  initialized tick arrays beyond the range of a single bitmap, with
  `flip_tick_array_bit`, `check_tick_array_is_initialized`,
  `next_initialized_tick_array_from_one_bitmap` and a byte layout.
- `clmm.protocol_position`: `ProtocolPositionState`, whose `update` applies a
  liquidity change and accrues the fees owed since the last update.
- `clmm.support_mint`: `SupportMintAssociated`, a record of a supported mint.
- `clmm.epoch`: `get_recent_epoch()`, the current two-day epoch number taken
  from the wall clock.

## Install

```
pip install .
```

## Example

```python
from clmm.tick_array import TickArrayState

TickArrayState.get_array_start_index(-120, 3)   # -180

array = TickArrayState()
array.initialize(0, 15, bytes(32))
tick = array.get_tick_state(30, 15)
tick.initialize(30, 15)
tick.liquidity_gross = 1
array.next_initialized_tick(0, 15, zero_for_one=False).tick   # 30
```

Checks that fail raise `clmm.tick.ClmmError`, which carries an `ErrorCode` in
its `code` attribute. Arithmetic that would leave the fixed integer ranges of
the account fields raises `OverflowError`; malformed byte layouts raise
`ValueError`.

## What it does not do

The package holds the state types and their arithmetic only. It has no pool
state, no swap or price math, no account storage or address derivation, and
no token transfers; callers keep the state objects themselves and persist
them, if needed, through the `to_bytes` / `from_bytes` layouts.

## Tests

```
pip install .[test]
pytest
```