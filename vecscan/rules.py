"""Declarative edit rules applied to a list in one growable scan.

Rules come from the ``rules:`` section of the config. Each element is
checked against the rules in order and the first match decides what
happens to it; elements no rule matches are kept unchanged.

Example::

    rules:
      - match: {status: draft}
        action: remove
      - match: {kind: section}
        action: insert_after
        items: [{kind: divider}]
      - match: 0
        action: replace
        value: null
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from vecscan.config import ConfigError
from vecscan.scan import GrowableScanCursor

log = logging.getLogger(__name__)

ACTIONS = ("keep", "remove", "replace", "update", "insert_before", "insert_after")

# Extra key each action needs, if any
_PAYLOAD_KEYS: dict[str, str | None] = {
    "keep": None,
    "remove": None,
    "replace": "value",
    "update": "set",
    "insert_before": "items",
    "insert_after": "items",
}

_MATCH_ALL = object()


@dataclass
class Rule:
    """A single match/action pair."""

    action: str
    match: Any = _MATCH_ALL
    payload: Any = None

    def matches(self, element: Any) -> bool:
        """Subset match for mapping patterns, equality otherwise."""
        if self.match is _MATCH_ALL:
            return True
        if isinstance(self.match, dict):
            if not isinstance(element, dict):
                return False
            return all(
                key in element and _equal(element[key], want)
                for key, want in self.match.items()
            )
        return _equal(element, self.match)


@dataclass
class RuleReport:
    """Counts of what :func:`apply_rules` did."""

    scanned: int = 0
    actions: dict[str, int] = field(default_factory=lambda: {a: 0 for a in ACTIONS})
    inserted: int = 0
    unmatched: int = 0
    final_length: int = 0

    def summary(self) -> str:
        done = ", ".join(f"{n} {a}" for a, n in self.actions.items() if n)
        return (
            f"scanned {self.scanned}, {done or 'no rule matched'}; "
            f"{self.inserted} inserted, {self.final_length} remain"
        )


def parse_rule(raw: Any, index: int = 0) -> Rule:
    """Build a :class:`Rule` from one ``rules:`` entry.

    Raises
    ------
    ConfigError
        If the entry is not a mapping, names an unknown action, or is
        missing the key its action needs.
    """
    where = f"rules[{index}]"
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping, got {type(raw).__name__}")

    action = raw.get("action")
    if action not in ACTIONS:
        raise ConfigError(
            f"{where}: unknown action '{action}'. Expected one of {', '.join(ACTIONS)}."
        )

    payload_key = _PAYLOAD_KEYS[action]
    payload = None
    if payload_key is not None:
        if payload_key not in raw:
            raise ConfigError(f"{where}: action '{action}' requires '{payload_key}'")
        payload = raw[payload_key]
        if payload_key == "set" and not isinstance(payload, dict):
            raise ConfigError(f"{where}: 'set' must be a mapping")
        if payload_key == "items" and not isinstance(payload, list):
            raise ConfigError(f"{where}: 'items' must be a list")

    allowed = {"match", "action"} | ({payload_key} if payload_key else set())
    unknown = set(raw) - allowed
    if unknown:
        raise ConfigError(f"{where}: unexpected keys {sorted(unknown)}")

    match = raw["match"] if "match" in raw else _MATCH_ALL
    return Rule(action=action, match=match, payload=payload)


def parse_rules(raw_rules: list[Any]) -> list[Rule]:
    """Parse every entry of a ``rules:`` list."""
    return [parse_rule(raw, i) for i, raw in enumerate(raw_rules)]


def apply_rules(
    items: list[Any],
    rules: list[Rule],
    check_invariants: bool = False,
) -> RuleReport:
    """Apply *rules* to *items* in place and report what changed.

    ``insert_before`` items land ahead of the matched element and
    ``insert_after`` items right behind it. Inserted elements are not
    themselves matched against the rules.
    """
    report = RuleReport()

    with GrowableScanCursor(items, check_invariants=check_invariants) as scan:
        for item in scan:
            report.scanned += 1
            rule = next((r for r in rules if r.matches(item.value)), None)
            if rule is None:
                report.unmatched += 1
                continue
            report.actions[rule.action] += 1

            if rule.action == "remove":
                item.remove()
            elif rule.action == "replace":
                item.replace(_copy(rule.payload))
            elif rule.action == "update":
                if isinstance(item.value, dict):
                    item.value = {**item.value, **_copy(rule.payload)}
                else:
                    log.warning(
                        "Skipping update on non-mapping element %r", item.value
                    )
            elif rule.action == "insert_before":
                scan.insert_before_item(_copy(rule.payload))
                report.inserted += len(rule.payload)
            elif rule.action == "insert_after":
                scan.insert_before_current(_copy(rule.payload))
                report.inserted += len(rule.payload)

    report.final_length = len(items)
    log.info("Rules applied: %s", report.summary())
    return report


def _equal(left: Any, right: Any) -> bool:
    """Equality that keeps JSON booleans apart from 0 and 1."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return left == right


def _copy(value: Any) -> Any:
    """Fresh copy of a YAML payload so inserted elements never alias each other."""
    if isinstance(value, dict):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy(v) for v in value]
    return value
