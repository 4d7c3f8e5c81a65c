"""Lexical search over captures.

Weighted substring matching, no index and no remote call. Scores:

    whole query in summary        +10
    whole query in raw content    +5
    whole query in a tag          +8 per tag
    whole query in an entity      +7 per entity
    whole query in lead/show data +8 each
    each query word (len > 2) in summary +2, raw content +1, a tag +3 per tag

Word scores only apply to multi-word queries. For a one-word query the word
is the query, and scoring it again per word would stack +3 (summary and
content) and +3 per tag on top of the whole-query weights. A single match in
a summary therefore scores 10, not 12.
"""

from capture_inbox.models.capture import Capture

MIN_WORD_LENGTH = 3


def _words(query: str) -> list[str]:
    words = query.split()
    if len(words) < 2:
        return []
    return [w for w in words if len(w) >= MIN_WORD_LENGTH]


def _payload_text(payload) -> str:
    if payload is None:
        return ""
    values = payload.model_dump(mode="json").values()
    return " ".join(str(v) for v in values if v is not None).lower()


def score_capture(capture: Capture, query: str) -> int:
    """Return the relevance score of capture for query (0 means no match)."""
    query = query.strip().lower()
    if not query:
        return 0

    summary = capture.summary.lower()
    content = capture.raw_content.lower()
    tags = [t.lower() for t in capture.tags]

    score = 0
    if query in summary:
        score += 10
    if query in content:
        score += 5
    score += 8 * sum(1 for tag in tags if query in tag)

    for word in _words(query):
        if word in summary:
            score += 2
        if word in content:
            score += 1
        score += 3 * sum(1 for tag in tags if word in tag)

    score += 7 * sum(1 for e in capture.entities if query in e.value.lower())

    if query in _payload_text(capture.lead_data):
        score += 8
    if query in _payload_text(capture.show_data):
        score += 8
    return score


def search_captures(captures: list[Capture], query: str) -> list[Capture]:
    """Return the captures matching query, best first.

    Ties keep their input order (newest first in the repository). A blank
    query matches nothing. The input list is never modified.
    """
    if not isinstance(query, str) or not query.strip():
        return []
    scored = [(score_capture(c, query), c) for c in captures]
    ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: -item[0])
    return [capture for _, capture in ranked]
