from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .engine import Pattern, apply_patterns, compile_patterns

RULES_FILENAME = "rules.json"
_STATE_DIR_ENV = "MULTIREP_STATE_DIR"


@dataclass
class RuleSet:
    """Parallel find/replace lists as stored in a rules file."""

    find: list[str] = field(default_factory=list)
    replace: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.find)

    def patterns(self) -> list[Pattern]:
        return compile_patterns(self.find, self.replace)

    def apply(self, text: str) -> str:
        patterns = self.patterns()
        if not patterns:
            return text
        return apply_patterns(text, patterns)

    def to_payload(self) -> dict[str, object]:
        return {"find": list(self.find), "replace": list(self.replace)}


def _state_dir() -> Path:
    env_dir = os.environ.get(_STATE_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".local" / "share" / "multirep"


def default_rules_path() -> Path:
    return _state_dir() / RULES_FILENAME


def save_rules(path: Path, rules: RuleSet) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(rules.to_payload(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return path


def ensure_rules_file(path: Path) -> Path:
    if path.exists():
        return path
    return save_rules(path, RuleSet())


def _string_list(raw: dict[str, object], key: str, path: Path) -> list[str]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{path.name} must contain a '{key}' array.")
    return list(value)


def load_rules(path: Path) -> RuleSet:
    """
    Read a rules file.

    A missing file yields an empty rule set. Token values are checked by
    ``compile_patterns`` so malformed entries raise ``ReplaceArgumentError``.
    """
    if not path.exists():
        return RuleSet()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to parse rules file: {path}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name} must contain a JSON object.")
    rules = RuleSet(find=_string_list(raw, "find", path), replace=_string_list(raw, "replace", path))
    rules.patterns()
    return rules


def append_rule(path: Path, find: str, replace: str) -> RuleSet:
    rules = load_rules(path)
    # existing find tokens keep the replacement they resolved to before the append
    paired = [pattern.replace for pattern in rules.patterns()]
    candidate = RuleSet(find=[*rules.find, find], replace=[*paired, replace])
    candidate.patterns()
    save_rules(path, candidate)
    return candidate


__all__ = [
    "RULES_FILENAME",
    "RuleSet",
    "default_rules_path",
    "ensure_rules_file",
    "load_rules",
    "save_rules",
    "append_rule",
]
