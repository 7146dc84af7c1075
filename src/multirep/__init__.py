from .engine import (
    EmptyReplacementListError,
    InvalidFindTokenError,
    Match,
    NullArgumentError,
    NullReplacementValueError,
    Pattern,
    ReplaceArgumentError,
    apply_patterns,
    compile_patterns,
    iter_matches,
    replace,
    replace_mapping,
    substitute,
)
from .rules import RuleSet, load_rules, save_rules

__all__ = [
    "replace",
    "replace_mapping",
    "compile_patterns",
    "apply_patterns",
    "iter_matches",
    "substitute",
    "Pattern",
    "Match",
    "ReplaceArgumentError",
    "NullArgumentError",
    "EmptyReplacementListError",
    "NullReplacementValueError",
    "InvalidFindTokenError",
    "RuleSet",
    "load_rules",
    "save_rules",
]
