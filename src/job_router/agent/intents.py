"""Local intent table and deterministic matcher.

Conversational boilerplate (greetings, thanks, farewells, questions about the
assistant itself) is answered here without any network call. The matcher
supports two keyword kinds:

- phrases (keywords containing a space) match as substrings of the normalized
  sentence and never take part in word matching;
- single words match a user token exactly, or within `fuzzy_threshold` edits
  when the token is longer than three characters.

Tokens shorter than two characters are ignored and short tokens are never
fuzzy-matched, so words like "of" cannot collide with "ok". Rules are
evaluated in declaration order and the first hit wins.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from job_router.types import IntentMatch, IntentRule

logger = logging.getLogger(__name__)

_STRIP_PATTERN = re.compile(r"[^a-z0-9\s]")

_MIN_TOKEN_LENGTH = 2
_MIN_FUZZY_TOKEN_LENGTH = 4

DEFAULT_INTENTS: tuple[IntentRule, ...] = (
    IntentRule(
        name="greeting",
        keywords=(
            "hello", "helloo", "hi", "hii", "hey", "heey", "greetings", "sup",
            "welcome", "good morning", "good evening", "yo", "hola",
        ),
        fuzzy_threshold=1,
        response_text=(
            "**Hello!** 👋 I am your AI Recruiter.\n\nTry asking:\n"
            '- *"High paying Laravel jobs"*\n- *"Remote React roles"*'
        ),
        actions=(
            {"type": "suggestion", "label": "High paying Laravel jobs", "question": "High paying Laravel jobs"},
            {"type": "suggestion", "label": "Remote React roles", "question": "Remote React roles"},
        ),
    ),
    IntentRule(
        name="small_talk",
        keywords=(
            "how are you", "how r u", "how you doing", "what up", "whats up",
            "how is it going", "doing good",
        ),
        fuzzy_threshold=1,
        response_text="I'm doing great, thanks for asking! 🤖 Ready to help you find your next job.",
    ),
    IntentRule(
        name="gratitude",
        keywords=(
            "thanks", "thank", "thx", "cool", "awesome", "great", "ok", "okay",
            "perfect", "nice", "appreciated", "cheers",
        ),
        fuzzy_threshold=1,
        response_text="You're very welcome! 🚀 Let me know if you need anything else.",
    ),
    IntentRule(
        name="identity",
        keywords=(
            "who are you", "what are you", "your name", "are you a bot", "are you human",
            "real person", "who made you", "developer", "pixel ai",
        ),
        fuzzy_threshold=1,
        response_text="I am **Pixel AI**, a smart recruiting agent that searches real job postings for you.",
    ),
    IntentRule(
        name="help",
        keywords=(
            "help", "support", "guide", "stuck", "error", "broken",
            "what can you do", "features", "how to use",
        ),
        fuzzy_threshold=1,
        response_text=(
            "Here is what I can do:\n"
            '🔹 **Salary Search** (e.g. "Highest paying PHP jobs")\n'
            '🔹 **Tech Stack Search** (e.g. "Vue.js remote roles")\n'
            '🔹 **Recent Jobs** (e.g. "Newest postings")'
        ),
        actions=(
            {"type": "suggestion", "label": "Highest paying PHP jobs", "question": "Highest paying PHP jobs"},
            {"type": "suggestion", "label": "Newest postings", "question": "Newest postings"},
        ),
    ),
    IntentRule(
        name="farewell",
        keywords=("bye", "goodbye", "see ya", "cya", "exit", "quit", "later"),
        fuzzy_threshold=1,
        response_text="Good luck with your job search! 👋 Come back soon.",
    ),
)


def normalize_question(question: str) -> str:
    """Lower-case, drop everything outside `[a-z0-9]` and whitespace, trim."""
    return _STRIP_PATTERN.sub("", question.lower()).strip()


@dataclass(frozen=True, slots=True)
class _Keyword:
    text: str
    is_phrase: bool


class LocalIntentMatcher:
    """First-match-wins keyword matcher over an immutable intent table."""

    def __init__(self, rules: tuple[IntentRule, ...] = DEFAULT_INTENTS) -> None:
        self._rules = tuple(rules)
        self._keywords: tuple[tuple[IntentRule, tuple[_Keyword, ...]], ...] = tuple(
            (rule, tuple(_compile_keyword(keyword) for keyword in rule.keywords))
            for rule in self._rules
        )

    def match(self, question: str) -> IntentMatch | None:
        sentence = normalize_question(question)
        if not sentence:
            return None
        words = sentence.split()

        for rule, keywords in self._keywords:
            for keyword in keywords:
                if keyword.is_phrase:
                    if keyword.text in sentence:
                        return _hit(rule, keyword.text)
                    continue
                if any(_word_matches(word, keyword.text, rule.fuzzy_threshold) for word in words):
                    return _hit(rule, keyword.text)
        return None


def _compile_keyword(keyword: str) -> _Keyword:
    text = keyword.lower().strip()
    return _Keyword(text=text, is_phrase=" " in text)


def _word_matches(word: str, keyword: str, threshold: int) -> bool:
    if len(word) < _MIN_TOKEN_LENGTH:
        return False
    if word == keyword:
        return True
    if threshold > 0 and len(word) >= _MIN_FUZZY_TOKEN_LENGTH:
        return Levenshtein.distance(word, keyword, score_cutoff=threshold) <= threshold
    return False


def _hit(rule: IntentRule, keyword: str) -> IntentMatch:
    logger.debug("Local intent %s matched on keyword %r", rule.name, keyword)
    return IntentMatch(
        intent=rule.name,
        response_text=rule.response_text,
        actions=rule.actions,
    )
