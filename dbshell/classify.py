"""Classification of server lines into prompt kinds."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .models import PromptClass

LinePredicate = Callable[[str], bool]

_QUOTED_TOKEN = re.compile(r"'([^']*)'")
DATABASE_NOTICE_MARKER = "Using database"


def _equals_any(*sentinels: str) -> LinePredicate:
    folded = frozenset(sentinel.casefold() for sentinel in sentinels)

    def _predicate(line: str) -> bool:
        return line.strip().casefold() in folded

    return _predicate


def _is_database_notice(line: str) -> bool:
    return DATABASE_NOTICE_MARKER in line and bool(extract_database(line))


@dataclass(frozen=True, slots=True)
class PromptRule:
    """One row of the ordered classification table."""

    kind: PromptClass
    matches: LinePredicate


PROMPT_RULES: tuple[PromptRule, ...] = (
    PromptRule(PromptClass.USERNAME_REQUEST, _equals_any("Enter username:", "Username:")),
    PromptRule(PromptClass.PASSWORD_REQUEST, _equals_any("Enter password:", "Password:")),
    PromptRule(PromptClass.YES_NO_AUTH_REQUEST, _equals_any("Do you want authentication (yes/no)?")),
    PromptRule(PromptClass.DATABASE_SELECTION_NOTICE, _is_database_notice),
)


def classify_line(line: str, rules: tuple[PromptRule, ...] = PROMPT_RULES) -> PromptClass:
    """Return the first matching prompt class, falling back to plain output."""

    for rule in rules:
        if rule.matches(line):
            return rule.kind
    return PromptClass.PLAIN_OUTPUT


def extract_database(line: str) -> str | None:
    """Content between the first pair of single quotes, if any."""

    match = _QUOTED_TOKEN.search(line)
    if match is None:
        return None
    return match.group(1)


__all__ = [
    "DATABASE_NOTICE_MARKER",
    "PROMPT_RULES",
    "PromptRule",
    "classify_line",
    "extract_database",
]
