"""Record marking a token mint as supported by the pools."""

from __future__ import annotations

from dataclasses import dataclass, field

from clmm.tick import DEFAULT_PUBKEY, PUBKEY_LEN

SUPPORT_MINT_SEED = "support_mint"


def _zero_padding() -> list[int]:
    return [0] * 8


@dataclass
class SupportMintAssociated:
    """Associates a supported token mint with its derived account."""

    bump: int = 0
    mint: bytes = DEFAULT_PUBKEY
    padding: list[int] = field(default_factory=_zero_padding)

    LEN = 8 + 1 + 32 + 64

    def initialize(self, bump: int, mint: bytes) -> None:
        if not 0 <= bump <= 0xFF:
            raise ValueError(f"bump must fit in a byte: {bump}")
        mint = bytes(mint)
        if len(mint) != PUBKEY_LEN:
            raise ValueError(f"mint must be {PUBKEY_LEN} bytes, got {len(mint)}")
        self.bump = bump
        self.mint = mint