"""Conditional visibility — which fields are shown for the current answers."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from formpulse.schemas.fields import SurveyField

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> str:
    """Stringify an answer the way the comparison operators see it."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def is_visible(field: SurveyField, answers: Mapping[str, Any]) -> bool:
    """Return whether ``field`` is shown given the current ``answers``.

    The dependency's answer is read as-is, even when the dependency is itself
    hidden; hiding does not propagate down a chain of rules.
    """
    rule = field.visibility
    if rule is None or not rule.depends_on_id:
        return True

    target = answers.get(rule.depends_on_id)
    expected = rule.value if rule.value is not None else ""

    if rule.operator == "checked":
        return target is True
    if rule.operator == "includes":
        if isinstance(target, list):
            return expected in target
        if isinstance(target, str):
            return expected in target
        return False
    if rule.operator == "not_equals":
        return _stringify(target) != expected
    return _stringify(target) == expected


def visible_fields(fields: Iterable[SurveyField], answers: Mapping[str, Any]) -> list[SurveyField]:
    return [field for field in fields if is_visible(field, answers)]


# ---------------------------------------------------------------------------
# Form-definition checks
# ---------------------------------------------------------------------------


def find_dependency_cycle(fields: Iterable[SurveyField]) -> list[str] | None:
    """Return the field ids of one visibility dependency cycle, or None.

    Each field has at most one dependency, so the rules form a functional
    graph; walking from every node until a repeat finds any cycle.
    """
    depends_on = {f.id: f.visibility.depends_on_id for f in fields if f.visibility is not None}
    settled: set[str] = set()

    for start in depends_on:
        if start in settled:
            continue
        path: list[str] = []
        on_path: set[str] = set()
        node: str | None = start
        while node is not None and node not in settled:
            if node in on_path:
                return path[path.index(node):]
            path.append(node)
            on_path.add(node)
            node = depends_on.get(node)
        settled.update(path)
    return None


def check_visibility_rules(fields: list[SurveyField]) -> list[str]:
    """Validate visibility rules of a form definition, return list of errors."""
    errors: list[str] = []
    ids = [f.id for f in fields]
    known = set(ids)

    seen: set[str] = set()
    for field_id in ids:
        if field_id in seen:
            errors.append(f"Field '{field_id}': duplicate field id")
        seen.add(field_id)

    for field in fields:
        rule = field.visibility
        if rule is None:
            continue
        if rule.depends_on_id == field.id:
            errors.append(f"Field '{field.id}': visibility cannot depend on itself")
        elif rule.depends_on_id not in known:
            errors.append(f"Field '{field.id}': visibility depends on unknown field '{rule.depends_on_id}'")

    if not errors:
        cycle = find_dependency_cycle(fields)
        if cycle:
            logger.info("Rejected visibility dependency cycle: %s", cycle)
            errors.append("Visibility rules form a cycle: " + " -> ".join(cycle + [cycle[0]]))
    return errors


class FormDefinitionError(Exception):
    """Raised when a form's field list cannot be saved."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


def ensure_valid_fields(fields: list[SurveyField]) -> None:
    """Raise FormDefinitionError unless ``fields`` can be saved as a form."""
    if not fields:
        raise FormDefinitionError(["Add at least one field"])
    errors = check_visibility_rules(fields)
    if errors:
        raise FormDefinitionError(errors)
