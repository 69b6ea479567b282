"""Symbol set canonicalization."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .exceptions import SymbolValidationError


@dataclass(frozen=True, slots=True)
class SymbolSet:
    """Canonical set of ticker symbols: trimmed, uppercased, deduplicated, sorted.

    Used both as a subscription target and as the PriceCache key, so two
    requests naming the same symbols in any order or casing share one entry.
    """

    symbols: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str | Iterable[str] | None) -> SymbolSet:
        """Build a SymbolSet from a comma-separated string or an iterable of strings."""
        if raw is None:
            items: Iterable[str] = ()
        elif isinstance(raw, str):
            items = raw.split(",")
        else:
            items = (part for item in raw for part in item.split(","))

        cleaned = {item.strip().upper() for item in items}
        cleaned.discard("")
        return cls(symbols=tuple(sorted(cleaned)))

    @property
    def key(self) -> str:
        """Canonical cache key, e.g. 'ACB,FPT,VCB'."""
        return ",".join(self.symbols)

    def __iter__(self):
        return iter(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.symbols

    def __str__(self) -> str:
        return self.key


def validate_symbols(raw: str | Iterable[str] | None, max_symbols: int) -> SymbolSet:
    """Canonicalize a requested symbol list and enforce the size limits.

    Raises SymbolValidationError when no symbol survives canonicalization or
    when more than ``max_symbols`` distinct symbols are requested.
    """
    symbols = SymbolSet.parse(raw)
    if not symbols:
        raise SymbolValidationError(
            'Provide at least one ticker symbol via the "symbols" query parameter.'
        )
    if len(symbols) > max_symbols:
        raise SymbolValidationError(
            f"Too many symbols: {len(symbols)} requested, maximum is {max_symbols}."
        )
    return symbols
