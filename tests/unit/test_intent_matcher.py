import pytest

from job_router.agent.intents import DEFAULT_INTENTS, LocalIntentMatcher, normalize_question
from job_router.types import IntentRule


def _matcher() -> LocalIntentMatcher:
    return LocalIntentMatcher()


@pytest.mark.parametrize(
    ("question", "intent"),
    [
        ("hi there", "greeting"),
        ("Hello!", "greeting"),
        ("Good morning, recruiter", "greeting"),
        ("thanks a lot", "gratitude"),
        ("ok", "gratitude"),
        ("Who are you?", "identity"),
        ("what can you do", "help"),
        ("bye", "farewell"),
        ("see ya tomorrow", "farewell"),
    ],
)
def test_exact_keywords_and_phrases(question: str, intent: str) -> None:
    match = _matcher().match(question)

    assert match is not None
    assert match.intent == intent


def test_fuzzy_match_within_threshold() -> None:
    match = _matcher().match("helo there")

    assert match is not None
    assert match.intent == "greeting"
    assert match.response_text == DEFAULT_INTENTS[0].response_text


def test_phrase_is_matched_as_substring_not_word() -> None:
    match = _matcher().match("hey, how are you doing?")

    # "hey" is a greeting word and greeting is declared before small_talk.
    assert match is not None
    assert match.intent == "greeting"

    small_talk = _matcher().match("so how are you today")
    assert small_talk is not None
    assert small_talk.intent == "small_talk"


def test_short_tokens_are_not_fuzzy_matched() -> None:
    rules = (
        IntentRule(name="ack", keywords=("ok",), fuzzy_threshold=1, response_text="ack"),
    )
    matcher = LocalIntentMatcher(rules)

    assert matcher.match("of course") is None
    assert matcher.match("ok then") is not None


def test_single_character_tokens_are_ignored() -> None:
    rules = (IntentRule(name="a", keywords=("a",), fuzzy_threshold=0, response_text="a"),)

    assert LocalIntentMatcher(rules).match("a") is None


def test_zero_threshold_disables_fuzzy_matching() -> None:
    rules = (
        IntentRule(name="strict", keywords=("hello",), fuzzy_threshold=0, response_text="strict"),
    )

    assert LocalIntentMatcher(rules).match("helo") is None
    assert LocalIntentMatcher(rules).match("hello") is not None


def test_phrase_keywords_skip_word_matching() -> None:
    rules = (
        IntentRule(name="phrase", keywords=("how are you",), fuzzy_threshold=3, response_text="p"),
    )

    assert LocalIntentMatcher(rules).match("how") is None


def test_first_matching_rule_wins() -> None:
    rules = (
        IntentRule(name="first", keywords=("thanks",), fuzzy_threshold=0, response_text="1"),
        IntentRule(name="second", keywords=("thanks",), fuzzy_threshold=0, response_text="2"),
    )

    match = LocalIntentMatcher(rules).match("thanks")

    assert match is not None
    assert match.intent == "first"


def test_actions_are_returned_with_match() -> None:
    match = _matcher().match("hello")

    assert match is not None
    assert match.actions
    assert all(action["type"] == "suggestion" for action in match.actions)


@pytest.mark.parametrize(
    "question",
    [
        "top 3 highest paying Laravel jobs",
        "Which companies are hiring data engineers",
        "newest postings in Cairo",
        "",
        "!!!",
    ],
)
def test_job_questions_fall_through(question: str) -> None:
    assert _matcher().match(question) is None


def test_normalize_keeps_spaces_and_drops_punctuation() -> None:
    assert normalize_question("  How ARE you?!  ") == "how are you"
    assert normalize_question("C# & Vue.js") == "c  vuejs"


def test_negative_threshold_rejected() -> None:
    with pytest.raises(ValueError):
        IntentRule(name="bad", keywords=("x",), fuzzy_threshold=-1, response_text="x")
