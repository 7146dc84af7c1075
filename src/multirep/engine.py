from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Sequence

__all__ = [
    "Pattern",
    "Match",
    "ReplaceArgumentError",
    "NullArgumentError",
    "EmptyReplacementListError",
    "NullReplacementValueError",
    "InvalidFindTokenError",
    "compile_patterns",
    "iter_matches",
    "apply_patterns",
    "substitute",
    "replace",
    "replace_mapping",
]


class ReplaceArgumentError(ValueError):
    """Raised when replace() receives structurally invalid input."""

    def __init__(self, argument: str, message: str, position: int | None = None) -> None:
        self.argument = argument
        self.position = position
        if position is not None:
            message = f"{argument}[{position}]: {message}"
        else:
            message = f"{argument}: {message}"
        super().__init__(message)


class NullArgumentError(ReplaceArgumentError, TypeError):
    """Raised when a required argument is None."""


class EmptyReplacementListError(ReplaceArgumentError):
    """Raised when find tokens are given without any replacement."""


class NullReplacementValueError(ReplaceArgumentError):
    """Raised when a replacement value is None or not a string."""


class InvalidFindTokenError(ReplaceArgumentError):
    """Raised when a find token is None, not a string, or empty."""


@dataclass(frozen=True, slots=True)
class Pattern:
    index: int
    find: str
    replace: str


@dataclass(frozen=True, slots=True)
class Match:
    start: int
    end: int
    pattern: Pattern


@dataclass(slots=True)
class _Candidate:
    pattern: Pattern
    position: int

    def priority(self) -> tuple[int, int, int]:
        # earlier position, then longer find token, then earlier declaration
        return (self.position, -len(self.pattern.find), self.pattern.index)


def _require(value: object, argument: str) -> None:
    if value is None:
        raise NullArgumentError(argument, "must not be None")


def compile_patterns(
    find_tokens: Iterable[str],
    replace_tokens: Iterable[str],
) -> list[Pattern]:
    """
    Validate the parallel token lists and pair them into patterns.

    Find token ``i`` uses ``replace_tokens[min(i, len(replace_tokens) - 1)]``:
    surplus find tokens reuse the last replacement and surplus replacements
    are ignored. An empty ``find_tokens`` yields no patterns regardless of
    ``replace_tokens``.
    """
    _require(find_tokens, "find_tokens")
    _require(replace_tokens, "replace_tokens")
    if isinstance(find_tokens, str):
        raise InvalidFindTokenError("find_tokens", "expected a sequence of strings, got a str")
    if isinstance(replace_tokens, str):
        raise NullReplacementValueError("replace_tokens", "expected a sequence of strings, got a str")

    finds = list(find_tokens)
    replacements = list(replace_tokens)
    if not replacements and finds:
        raise EmptyReplacementListError("replace_tokens", "at least one replacement is required")
    for idx, value in enumerate(replacements):
        if value is None:
            raise NullReplacementValueError("replace_tokens", "must not be None", idx)
        if not isinstance(value, str):
            raise NullReplacementValueError(
                "replace_tokens", f"expected str, got {type(value).__name__}", idx
            )

    patterns: list[Pattern] = []
    last = len(replacements) - 1
    for idx, value in enumerate(finds):
        if value is None:
            raise InvalidFindTokenError("find_tokens", "must not be None", idx)
        if not isinstance(value, str):
            raise InvalidFindTokenError("find_tokens", f"expected str, got {type(value).__name__}", idx)
        if not value:
            raise InvalidFindTokenError("find_tokens", "must not be empty", idx)
        patterns.append(Pattern(index=idx, find=value, replace=replacements[min(idx, last)]))
    return patterns


def iter_matches(source: str, patterns: Sequence[Pattern]) -> Iterator[Match]:
    """
    Yield the matches selected by a single left-to-right scan of ``source``.

    At each step the candidate with the earliest next occurrence wins; ties go
    to the longer find token, then to the earlier declared pattern. The chosen
    region is consumed and never rescanned, so matches never overlap and
    replacement text is never searched.
    """
    _require(source, "source")
    candidates: list[_Candidate] = []
    for pattern in patterns:
        position = source.find(pattern.find)
        if position >= 0:
            candidates.append(_Candidate(pattern, position))

    length = len(source)
    cursor = 0
    while candidates:
        winner = min(candidates, key=_Candidate.priority)
        end = winner.position + len(winner.pattern.find)
        yield Match(winner.position, end, winner.pattern)
        cursor = end
        if cursor >= length:
            break

        survivors: list[_Candidate] = []
        for candidate in candidates:
            if candidate.position < cursor:
                candidate.position = source.find(candidate.pattern.find, cursor)
                if candidate.position < 0:
                    continue
            survivors.append(candidate)
        candidates = survivors


def substitute(source: str, patterns: Sequence[Pattern]) -> tuple[str, list[Match]]:
    """Return the substituted text together with the matches that produced it."""
    _require(source, "source")
    matches = list(iter_matches(source, patterns))
    if not matches:
        return source, matches
    parts: list[str] = []
    cursor = 0
    for match in matches:
        parts.append(source[cursor : match.start])
        parts.append(match.pattern.replace)
        cursor = match.end
    parts.append(source[cursor:])
    return "".join(parts), matches


def apply_patterns(source: str, patterns: Sequence[Pattern]) -> str:
    text, _ = substitute(source, patterns)
    return text


def replace(
    source: str,
    find_tokens: Iterable[str],
    replace_tokens: Iterable[str],
) -> str:
    """
    Replace every find token in ``source`` with its paired replacement in one pass.

    >>> replace("catdog", ["cat", "dog"], ["X"])
    'XX'
    """
    _require(source, "source")
    if not isinstance(source, str):
        raise NullArgumentError("source", f"expected str, got {type(source).__name__}")
    patterns = compile_patterns(find_tokens, replace_tokens)
    if not patterns:
        return source
    return apply_patterns(source, patterns)


def replace_mapping(source: str, mapping: Mapping[str, str]) -> str:
    _require(mapping, "mapping")
    return replace(source, list(mapping.keys()), list(mapping.values()))
