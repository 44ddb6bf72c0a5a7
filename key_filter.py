"""Heuristics that keep only the candidates that look like localization keys."""

import json
import logging
from typing import Callable, Iterable

from heuristics import (
    CHART_ID_PREFIXES,
    DIAGNOSTIC_LINE_MARKERS,
    DIAGNOSTIC_MACRO_REACH,
    EXCLUDED_STRINGS,
    FORMAT_MACRO,
    FRAMEWORK_LINE_MARKERS,
    GRAPHQL_ATTRIBUTE,
    TYPE_ATTRIBUTE,
)
from scanner import Candidate

logger = logging.getLogger(__name__)

Rule = Callable[[Candidate, frozenset[str]], bool]


def _is_hangul(char: str) -> bool:
    return "가" <= char <= "힣"


def _decodes_as_json_string(value: str) -> bool:
    try:
        json.loads(f'"{value}"')
    except ValueError:
        return False
    return True


def is_not_key_shaped(candidate: Candidate, selectors: frozenset[str] = frozenset()) -> bool:
    value = candidate.value
    if not _decodes_as_json_string(value):
        return True
    if not any(char.isalpha() for char in value):
        return True
    # Paths and anchors like "/api" or "#main", but not "# of items".
    if value[0] in "/#" and len(value) > 1 and value[1] != " ":
        return True
    if "%Y" in value:
        return True
    return any(_is_hangul(char) for char in value)


def _format_nearby(preceding: tuple[str, ...]) -> bool:
    for index, line in enumerate(preceding[:3]):
        if FORMAT_MACRO not in line:
            continue
        if index == 0:
            return True
        # A format!( line followed by a blank line still owns the literal.
        if not preceding[index - 1]:
            return True
    return False


def is_denylisted(candidate: Candidate, selectors: frozenset[str] = frozenset()) -> bool:
    if candidate.value in EXCLUDED_STRINGS:
        return True
    if any(marker in candidate.line_text for marker in DIAGNOSTIC_LINE_MARKERS):
        return True
    if candidate.key_call:
        return False
    preceding = candidate.preceding
    for marker, reach in DIAGNOSTIC_MACRO_REACH:
        if any(marker in line for line in preceding[:reach]):
            return True
    return _format_nearby(preceding)


def is_single_letter(candidate: Candidate, selectors: frozenset[str] = frozenset()) -> bool:
    return len(candidate.value) == 1 and candidate.value.isalpha()


def is_framework_field(candidate: Candidate, selectors: frozenset[str] = frozenset()) -> bool:
    if any(marker in candidate.line_text for marker in FRAMEWORK_LINE_MARKERS):
        return True
    if not candidate.key_call:
        preceding = candidate.preceding
        if preceding and TYPE_ATTRIBUTE in preceding[0]:
            return True
        if any(GRAPHQL_ATTRIBUTE in line for line in preceding):
            return True
    return candidate.value in selectors


def is_chart_identifier(candidate: Candidate, selectors: frozenset[str] = frozenset()) -> bool:
    return candidate.value.startswith(CHART_ID_PREFIXES)


FILTER_RULES: tuple[Rule, ...] = (
    is_not_key_shaped,
    is_denylisted,
    is_single_letter,
    is_framework_field,
    is_chart_identifier,
)


def is_key(candidate: Candidate, selectors: frozenset[str] = frozenset()) -> bool:
    """Return True when no rule excludes *candidate*."""

    return not any(rule(candidate, selectors) for rule in FILTER_RULES)


def filter_keys(
    candidates: Iterable[Candidate],
    selectors: frozenset[str] = frozenset(),
) -> frozenset[str]:
    """Return the distinct values of the candidates that survive every rule."""

    kept: set[str] = set()
    dropped = 0
    for candidate in candidates:
        if is_key(candidate, selectors):
            kept.add(candidate.value)
        else:
            dropped += 1
    logger.debug("Key filter kept %s distinct keys, dropped %s candidates", len(kept), dropped)
    return frozenset(kept)
