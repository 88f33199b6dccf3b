"""Case normalization for slug names.

Pure functions with no storage dependencies — safe to import from any
layer (CLI, registry, stores).
"""

from __future__ import annotations

import re

from slug_registry.logging import logger
from slug_registry.models import CaseRule

# A word for title-casing: a run of letters plus inner apostrophes ("don't").
# Digits, underscores and punctuation end a word.
_WORD_RE = re.compile(r"[^\W\d_]+(?:['’][^\W\d_]+)*")


def _capitalize_word(match: re.Match[str]) -> str:
    word = match.group(0)
    return word[:1].upper() + word[1:].lower()


def normalize(case_rule: CaseRule | str | None, text: str) -> str:
    """Apply *case_rule* to *text*.

    >>> normalize(CaseRule.LETTER, "hello WORLD")
    'Hello world'
    >>> normalize(CaseRule.CAPITALIZE, "hello world")
    'Hello World'

    Unknown rules leave the text unchanged.
    """
    rule = CaseRule.parse(case_rule)
    if rule is None:
        logger.warning("Unknown case rule %r — name left unchanged", case_rule)
        return text

    if rule is CaseRule.LOWER:
        return text.lower()
    if rule is CaseRule.UPPER:
        return text.upper()
    if rule is CaseRule.LETTER:
        return text[:1].upper() + text[1:].lower()
    if rule is CaseRule.CAPITALIZE:
        return _WORD_RE.sub(_capitalize_word, text)
    return text
