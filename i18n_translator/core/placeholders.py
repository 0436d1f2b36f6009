"""Placeholder preservation checks."""

import re
from dataclasses import dataclass
from typing import FrozenSet, Pattern, Sequence, Tuple

from .exceptions import PlaceholderMismatchError

# (pattern, canonical spelling). Order matters: ``{{name}}`` must be consumed
# before the single-brace form can see its inner ``{name}``.
DEFAULT_SYNTAXES: Tuple[Tuple[str, str], ...] = (
    (r"\{\{\s*(\w+)\s*\}\}", "{{{{{}}}}}"),
    (r"%\{(\w+)\}", "%{{{}}}"),
    (r"\{(\w+)\}", "{{{}}}"),
)


@dataclass(frozen=True)
class PlaceholderCheck:
    missing: FrozenSet[str]
    added: FrozenSet[str]

    @property
    def ok(self) -> bool:
        return not self.missing and not self.added


class PlaceholderGuard:
    """Compares placeholder tokens before and after translation.

    Tokens are normalised to a canonical spelling, so ``{{ name }}`` and
    ``{{name}}`` are the same token while ``%{name}`` is a different one.
    The comparison is on sets: order and repetition do not matter.
    """

    def __init__(self, syntaxes: Sequence[Tuple[str, str]] = DEFAULT_SYNTAXES):
        if not syntaxes:
            raise ValueError("At least one placeholder syntax is required")
        self._syntaxes = tuple(syntaxes)
        self._pattern: Pattern[str] = re.compile(
            "|".join(f"(?:{pattern})" for pattern, _ in self._syntaxes)
        )

    def extract(self, text: str) -> FrozenSet[str]:
        tokens = set()
        for match in self._pattern.finditer(text):
            # Exactly one alternative matched; find which one
            for position, name in enumerate(match.groups()):
                if name is not None:
                    tokens.add(self._syntaxes[position][1].format(name))
                    break
        return frozenset(tokens)

    def check(self, source: str, translated: str) -> PlaceholderCheck:
        expected = self.extract(source)
        actual = self.extract(translated)
        return PlaceholderCheck(missing=expected - actual, added=actual - expected)

    def verify(self, source: str, translated: str, provider: str = "unknown") -> None:
        """Raise PlaceholderMismatchError unless both texts carry the same tokens."""
        result = self.check(source, translated)
        if not result.ok:
            raise PlaceholderMismatchError(provider, result.missing, result.added)
