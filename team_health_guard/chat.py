"""
Chat intent detection and entity extraction.

Rule-based: every function is a pure mapping from message text to
structured output, driven by the tables in ``team_health_guard.patterns``.
"""

import logging

from team_health_guard.models import (
    EntityBundle,
    IntentResult,
    NamedEntities,
    TaskClaim,
    require_text,
)
from team_health_guard.patterns import (
    ANNOUNCEMENT_OPENER,
    BLOCKER,
    MENTION,
    MESSAGE_INTENTS,
    NER_PATTERNS,
    PROGRESS_UPDATE,
    QUESTION_MARK,
    REPEATED_EXCLAMATION,
    TASK_CLAIM,
    TASK_CLAIM_DESCRIPTION,
    TASK_PHRASE,
    TECH_TERMS,
    URGENCY,
)
from team_health_guard.rounding import round_half_up

logger = logging.getLogger(__name__)

PATTERN_WEIGHT = 1.5
QUESTION_WEIGHT = 1.0
ANNOUNCEMENT_WEIGHT = 1.5
URGENCY_WEIGHT = 1.0
EXCLAMATION_BLOCKER_WEIGHT = 0.3
EXCLAMATION_ANNOUNCEMENT_WEIGHT = 0.2
GENERAL_BASE_SCORE = 0.1


def score_intents(text: str) -> dict[str, float]:
    """
    Additive evidence score per intent, in declaration order.

    Every matching pattern contributes its weight; ``general`` carries a
    small base score so it wins when nothing else matches.
    """
    scores = {intent: 0.0 for intent in MESSAGE_INTENTS}
    scores["general"] = GENERAL_BASE_SCORE

    scores["blocker"] += PATTERN_WEIGHT * BLOCKER.match_count(text)
    scores["task_claim"] += PATTERN_WEIGHT * TASK_CLAIM.match_count(text)
    scores["progress_update"] += PATTERN_WEIGHT * PROGRESS_UPDATE.match_count(text)
    if QUESTION_MARK.search(text):
        scores["question"] += QUESTION_WEIGHT
    if ANNOUNCEMENT_OPENER.search(text):
        scores["announcement"] += ANNOUNCEMENT_WEIGHT

    if REPEATED_EXCLAMATION.search(text):
        scores["blocker"] += EXCLAMATION_BLOCKER_WEIGHT
        scores["announcement"] += EXCLAMATION_ANNOUNCEMENT_WEIGHT
    if URGENCY.search(text):
        scores["blocker"] += URGENCY_WEIGHT

    return scores


def detect_intent_with_confidence(text: str) -> IntentResult:
    """
    Classifies a message and reports how much of the evidence backs it.

    Confidence is the winning score's share of the total score, rounded to
    two decimals. A message that matches no pattern at all is ``general``
    with confidence 0: the base score of ``general`` is a default, not
    evidence.
    """
    require_text(text, "text")

    scores = score_intents(text)
    logger.debug("Intent scores for %r: %s", text[:60], scores)
    # sorted() is stable, so equal scores keep declaration order
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    top_intent, top_score = ranked[0]

    evidence = sum(v for k, v in scores.items() if k != "general")
    total = sum(scores.values())
    if evidence == 0 or total <= 0:
        return IntentResult(top_intent, 0.0)

    confidence = min(1.0, max(0.0, top_score / total))
    return IntentResult(top_intent, round_half_up(confidence, 2))


def detect_intent(text: str) -> str:
    return detect_intent_with_confidence(text).intent


def perform_ner(text: str) -> NamedEntities:
    """Extracts file paths, issue refs, URLs, versions and similar entities."""
    require_text(text, "text")

    def find(name: str) -> list[str]:
        return [m.group(0) for m in NER_PATTERNS[name].finditer(text)]

    return NamedEntities(
        file_paths=find("file_paths"),
        issue_refs=[
            f"#{m.group(1)}" for m in NER_PATTERNS["issue_refs"].finditer(text)
        ],
        urls=find("urls"),
        versions=find("versions"),
        error_codes=[m.group(1) for m in NER_PATTERNS["error_codes"].finditer(text)],
        environments=[e.lower() for e in find("environments")],
        branch_names=find("branch_names"),
        time_expressions=find("time_expressions"),
    )


def detect_technical_terms(text: str) -> list[str]:
    """Vocabulary terms contained in the message, in vocabulary order."""
    lower = require_text(text, "text").lower()
    return [term for term in TECH_TERMS if term in lower]


def extract_task_claims(text: str, author: str) -> TaskClaim | None:
    """
    Returns a TaskClaim when the message reads as a first-person claim.

    The description is captured separately and may be None even when the
    claim itself is recognised (e.g. "on it!").
    """
    require_text(text, "text")
    if not TASK_CLAIM.matches(text):
        return None

    match = TASK_CLAIM_DESCRIPTION.search(text)
    description = match.group(1).strip() if match else None
    return TaskClaim(claimant=author, description=description)


def extract_entities(text: str) -> EntityBundle:
    """
    Full entity bundle for a message.

    The ``tasks`` field uses its own shorter action-verb capture and does
    not depend on :func:`extract_task_claims`.
    """
    require_text(text, "text")

    ner = perform_ner(text)
    task_match = TASK_PHRASE.search(text)
    tasks = [task_match.group(1).strip()] if task_match else []

    return EntityBundle(
        **ner._asdict(),
        technical_terms=detect_technical_terms(text),
        mentioned_users=[m.group(1) for m in MENTION.finditer(text)],
        tasks=tasks,
        is_blocker=BLOCKER.matches(text),
        intent_confidence=detect_intent_with_confidence(text).confidence,
    )
