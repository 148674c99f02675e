"""
Form validation and sanitization.

A form is an explicit ``FormRules`` value: an ordered tuple of ``FieldSpec``.
Each field is trimmed, run through its rules in order (stopping at the first
rule that fails for that field), and HTML-escaped. Every field is checked even
when an earlier one failed, so the result carries all errors at once.

A rule is any callable taking the current value and returning the (possibly
transformed) value, raising ``ValueError`` with the user-facing message when
the value is rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from markupsafe import escape

Rule = Callable[[Any], Any]

_ALPHANUMERIC = re.compile(r"^[A-Za-z0-9]+$")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    rules: Tuple[Rule, ...] = ()
    # absent / empty values skip the rules and clean to None
    optional: bool = False
    # a scalar becomes a one-element list, an absent field an empty list
    multi: bool = False
    default: Any = None
    trim: bool = True
    escape: bool = True


@dataclass(frozen=True)
class FormRules:
    fields: Tuple[FieldSpec, ...]

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self.fields]


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass
class FormResult:
    """Outcome of ``validate_form``.

    ``values`` always holds the sanitized submission (for re-display);
    ``cleaned`` is only meaningful when ``ok``.
    """

    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def cleaned(self) -> Dict[str, Any]:
        if self.errors:
            raise ValueError("Form has validation errors; there are no cleaned fields")
        return self.values

    def errors_for(self, name: str) -> List[str]:
        return [e.message for e in self.errors if e.field == name]


# ---- rules ----

def required(message: str) -> Rule:
    def check(value):
        if value is None or value == "":
            raise ValueError(message)
        return value
    return check


def alphanumeric(message: str) -> Rule:
    def check(value):
        if not _ALPHANUMERIC.match(value):
            raise ValueError(message)
        return value
    return check


def length(message: str, min_length: int = 0, max_length: Optional[int] = None) -> Rule:
    def check(value):
        if len(value) < min_length or (max_length is not None and len(value) > max_length):
            raise ValueError(message)
        return value
    return check


def iso_date(message: str) -> Rule:
    """Parse an ISO 8601 date (or date-time, reduced to its date)."""
    def parse(value):
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValueError(message)
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            raise ValueError(message) from None
    return parse


def one_of(choices: Sequence[str], message: str) -> Rule:
    def check(value):
        if value not in choices:
            raise ValueError(message)
        return value
    return check


# ---- pipeline ----

def normalize_multi(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def validate_form(raw: Mapping[str, Any], form: FormRules) -> FormResult:
    """Validate and sanitize ``raw`` against ``form``. Never touches storage."""
    result = FormResult()
    for spec in form.fields:
        if spec.multi:
            cleaned = []
            for item in normalize_multi(raw.get(spec.name)):
                value, message = _run_chain(spec, item)
                cleaned.append(value)
                if message is not None:
                    result.errors.append(FieldError(spec.name, message))
            result.values[spec.name] = cleaned
        else:
            value, message = _run_chain(spec, raw.get(spec.name))
            result.values[spec.name] = value
            if message is not None:
                result.errors.append(FieldError(spec.name, message))
    return result


def _run_chain(spec: FieldSpec, value: Any) -> Tuple[Any, Optional[str]]:
    if value is None:
        value = ""
    if spec.trim and isinstance(value, str):
        value = value.strip()
    if value == "" and spec.default is not None:
        value = spec.default
    if spec.optional and not value:
        return None, None

    message = None
    for rule in spec.rules:
        try:
            value = rule(value)
        except ValueError as exc:
            message = str(exc)
            break

    if spec.escape and isinstance(value, str):
        value = str(escape(value))
    return value, message
