"""
Tests for chat intent detection and entity extraction.
"""

import pytest

from team_health_guard.chat import (
    detect_intent,
    detect_intent_with_confidence,
    detect_technical_terms,
    extract_entities,
    extract_task_claims,
    perform_ner,
    score_intents,
)
from team_health_guard.errors import ContractViolation
from team_health_guard.models import TaskClaim


class TestIntentDetection:
    """Test intent scoring and confidence."""

    def test_blocker(self):
        result = detect_intent_with_confidence("I am blocked on the API integration")
        assert result.intent == "blocker"
        assert result.confidence == 0.94

    def test_detect_intent_returns_label(self):
        assert detect_intent("I am blocked on the API integration") == "blocker"

    def test_question(self):
        result = detect_intent_with_confidence("Can someone review my PR?")
        assert result.intent == "question"
        assert result.confidence == 0.91

    def test_task_claim(self):
        result = detect_intent_with_confidence("I'm working on the login page")
        assert result.intent == "task_claim"
        assert result.confidence == 0.94

    def test_tie_breaks_by_declaration_order(self):
        """Test that progress_update beats announcement on an equal score."""
        scores = score_intents("FYI: deployed to staging")
        assert scores["progress_update"] == scores["announcement"] == 1.5

        result = detect_intent_with_confidence("FYI: deployed to staging")
        assert result.intent == "progress_update"
        assert result.confidence == 0.48

    def test_urgency_and_exclamation_modifiers(self):
        scores = score_intents("urgent!! prod is down")
        assert scores["blocker"] == pytest.approx(1.3)
        assert scores["announcement"] == pytest.approx(0.2)

        result = detect_intent_with_confidence("urgent!! prod is down")
        assert result.intent == "blocker"
        assert result.confidence == 0.81

    def test_no_evidence_is_general_with_zero_confidence(self):
        result = detect_intent_with_confidence("hello there")
        assert result.intent == "general"
        assert result.confidence == 0.0

    def test_empty_text(self):
        result = detect_intent_with_confidence("")
        assert result.intent == "general"
        assert result.confidence == 0.0

    @pytest.mark.parametrize(
        "text",
        [
            "stuck on this, not working, broken, help please!!! urgent",
            "done with the migration, pushed and merged",
            "?",
            "heads up: reminder about the deadline",
            "just chatting",
        ],
    )
    def test_confidence_is_bounded(self, text):
        confidence = detect_intent_with_confidence(text).confidence
        assert 0.0 <= confidence <= 1.0

    def test_non_string_rejected(self):
        with pytest.raises(ContractViolation):
            detect_intent_with_confidence(42)  # type: ignore[arg-type]


class TestNamedEntities:
    """Test regex entity extraction."""

    def test_file_path(self):
        assert "src/lib/auth.ts" in perform_ner(
            "check src/lib/auth.ts for the bug"
        ).file_paths

    def test_issue_refs_keep_hash_and_duplicates(self):
        assert perform_ner("See #42 and #7, also #42").issue_refs == [
            "#42",
            "#7",
            "#42",
        ]

    def test_version_and_environment(self):
        entities = perform_ner("Deployed v1.2.3 to Production")
        assert entities.versions == ["v1.2.3"]
        assert entities.environments == ["production"]

    def test_error_code(self):
        entities = perform_ner("error: 500 on staging")
        assert entities.error_codes == ["500"]
        assert entities.environments == ["staging"]

    def test_url(self):
        assert perform_ner("see https://example.com/guide now").urls == [
            "https://example.com/guide"
        ]

    def test_branch_names(self):
        assert perform_ner("merged feature/login-flow into main").branch_names == [
            "feature/login-flow",
            "main",
        ]

    def test_time_expressions(self):
        assert perform_ner(
            "finished yesterday, deploying tomorrow"
        ).time_expressions == ["yesterday", "tomorrow"]

    def test_nothing_found(self):
        entities = perform_ner("")
        assert all(value == [] for value in entities)


class TestTechnicalTerms:
    """Test vocabulary detection."""

    def test_vocabulary_order(self):
        """Test that results follow vocabulary order, not text order."""
        assert detect_technical_terms("The cache sits behind Redis and the API") == [
            "api",
            "redis",
            "cache",
        ]

    def test_no_terms(self):
        assert detect_technical_terms("lunch at noon") == []


class TestTaskClaims:
    """Test first-person task claim extraction."""

    def test_claim_with_description(self):
        claim = extract_task_claims("I'm working on the search endpoint.", "bob")
        assert claim == TaskClaim("bob", "the search endpoint")

    def test_claim_without_description(self):
        """Test that a recognised claim may have no description."""
        assert extract_task_claims("on it!", "carol") == TaskClaim("carol", None)
        claim = extract_task_claims("I'll handle the billing rewrite.", "alice")
        assert claim == TaskClaim("alice", None)

    def test_not_a_claim(self):
        assert extract_task_claims("The build is green", "dave") is None


class TestExtractEntities:
    """Test the full entity bundle."""

    def test_mentions_tasks_and_refs(self):
        bundle = extract_entities("@alice I'm fixing the flaky login test, see #12")
        assert bundle.mentioned_users == ["alice"]
        assert bundle.tasks == ["the flaky login test"]
        assert bundle.issue_refs == ["#12"]
        assert "test" in bundle.technical_terms
        assert bundle.is_blocker is False

    def test_blocker_flag_and_confidence(self):
        bundle = extract_entities("stuck on the migration, help please")
        assert bundle.is_blocker is True
        assert bundle.intent_confidence == detect_intent_with_confidence(
            "stuck on the migration, help please"
        ).confidence

    def test_task_phrase_is_independent_of_claims(self):
        """Test that third-person work still yields a task phrase."""
        text = "Alice is building the dashboard."
        assert extract_task_claims(text, "bob") is None
        assert extract_entities(text).tasks == ["the dashboard"]

    def test_task_phrase_is_bounded(self):
        text = "doing " + "x" * 60
        assert extract_entities(text).tasks == []
