"""
Pattern matchers for the four rule kinds.

All matchers are pure functions of the message text (and pattern). The regex
matcher is the only one that can fail on bad input; it logs and reports a
non-match so one broken rule never stops evaluation of the others.
"""

from __future__ import annotations

import re
from collections import Counter
from functools import lru_cache

from rulecord.configuration.app_configuration import app_config
from rulecord.util.logger import get_logger

logger = get_logger("matchers")

# A character followed by at least five copies of itself
REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{5,}")
REPEATED_TOKEN_LIMIT = 5
MIN_TOKEN_LENGTH = 3

CAPS_MIN_LENGTH = 10
CAPS_RATIO_LIMIT = 0.7

REGEX_FLAGS = re.IGNORECASE


@lru_cache(maxsize=app_config.regex_cache_size)
def compile_rule_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a regex rule pattern with the flags used at match time.

    Raises:
        re.error: If the pattern is not a valid expression.
    """
    return re.compile(pattern, REGEX_FLAGS)


def matches_keyword(text: str, pattern: str) -> bool:
    """Case-insensitive substring containment. An empty keyword never matches."""
    if not pattern:
        logger.error("[MATCHERS] Keyword rule with an empty pattern; treating as no match")
        return False
    return pattern.lower() in text.lower()


def matches_regex(text: str, pattern: str, rule_id: int | None = None) -> bool:
    """Case-insensitive regex search against the raw text.

    Compile and matching errors are logged and reported as no match.
    """
    if not pattern:
        logger.error("[MATCHERS] Regex rule #%s has an empty pattern; treating as no match", rule_id)
        return False
    try:
        return compile_rule_pattern(pattern).search(text) is not None
    except re.error as exc:
        logger.error(
            "[MATCHERS] Invalid regex pattern on rule #%s (%r): %s",
            rule_id,
            pattern,
            exc,
        )
    except Exception:
        logger.exception("[MATCHERS] Regex rule #%s failed while matching", rule_id)
    return False


def is_spam(text: str) -> bool:
    """
    Detect repetitive spam.

    True when a single character repeats six or more times in a row
    (``"aaaaaaa"``), or when any whitespace-separated token longer than two
    characters appears five or more times (case-insensitive).
    """
    if REPEATED_CHAR_PATTERN.search(text):
        return True

    counts = Counter(token for token in text.lower().split() if len(token) >= MIN_TOKEN_LENGTH)
    return any(count >= REPEATED_TOKEN_LIMIT for count in counts.values())


def is_caps_spam(text: str) -> bool:
    """
    Detect shouting.

    Messages shorter than ten characters, or without ASCII letters, never
    count. Otherwise more than 70% of the ASCII letters must be uppercase.
    """
    if len(text) < CAPS_MIN_LENGTH:
        return False

    letters = [ch for ch in text if ch.isascii() and ch.isalpha()]
    if not letters:
        return False

    upper = sum(1 for ch in letters if ch.isupper())
    return upper / len(letters) > CAPS_RATIO_LIMIT
