# tasks/tests/test_external_ranker.py
"""
External Ranker Tests
=====================

The OpenAI client is always mocked; no test performs network I/O.

Test Categories:
----------------
1. Configuration - missing key, client construction
2. Success path - ID merging and the safety net for omitted tasks
3. Failure path - every transport/API error maps to a RankerFailure
4. Caching - successful orderings are reused, failures never cached
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from django.core.cache import cache
from django.test import SimpleTestCase, override_settings

from tasks.ai_engine.cache import RankingCache
from tasks.ai_engine.external_ranker import ExternalRanker, build_prompt, merge_ranking
from tasks.ai_engine.result import Err, Ok, RankerFailure
from tasks.ai_engine.schema import AdaptiveWeights, ScoreBreakdown, ScoredTask, TaskSnapshot


# ===========================================================================
# HELPER FIXTURES
# ===========================================================================


def create_mock_completion(content: str) -> MagicMock:
    mock_choice = MagicMock()
    mock_choice.message.content = content

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


def scored_batch(*ids: str) -> list:
    batch = []
    for index, task_id in enumerate(ids):
        task = TaskSnapshot.from_payload({
            "id": task_id,
            "title": f"Task {task_id}",
            "dueDate": "2024-01-20",
            "priority": "High",
        })
        batch.append(ScoredTask(task=task, index=index, breakdown=ScoreBreakdown(urgency=50.0)))
    return batch


class RankerTestCase(SimpleTestCase):

    def setUp(self) -> None:
        cache.clear()
        self.batch = scored_batch("a", "b", "c")
        self.weights = AdaptiveWeights()


# ===========================================================================
# CONFIGURATION
# ===========================================================================


@override_settings(TASKTUNER={"EXTERNAL_RANKER_API_KEY": None})
class TestConfiguration(RankerTestCase):

    def test_missing_key_is_not_configured(self) -> None:
        ranker = ExternalRanker()

        self.assertFalse(ranker.is_configured)
        self.assertIn("No API key", ranker.configuration_error)

    def test_unconfigured_rank_returns_err(self) -> None:
        result = ExternalRanker().rank(self.batch, self.weights)

        self.assertFalse(result.is_ok)
        self.assertEqual(result.error.code, "NOT_CONFIGURED")

    @patch("tasks.ai_engine.external_ranker.OpenAI")
    def test_client_has_no_retries_and_bounded_timeout(self, mock_openai_class: MagicMock) -> None:
        ranker = ExternalRanker(api_key="test-key", timeout=4)

        self.assertTrue(ranker.is_configured)
        kwargs = mock_openai_class.call_args.kwargs
        self.assertEqual(kwargs["max_retries"], 0)
        self.assertEqual(kwargs["timeout"], 4.0)
        self.assertEqual(kwargs["base_url"], "https://openrouter.ai/api/v1")

    @patch("tasks.ai_engine.external_ranker.OpenAI")
    def test_health_check(self, mock_openai_class: MagicMock) -> None:
        health = ExternalRanker(api_key="test-key", model="some/model").health_check()

        self.assertTrue(health["is_configured"])
        self.assertEqual(health["model"], "some/model")


# ===========================================================================
# SUCCESS PATH
# ===========================================================================


@patch("tasks.ai_engine.external_ranker.OpenAI")
class TestRanking(RankerTestCase):

    def make_ranker(self, mock_openai_class: MagicMock, content: str) -> ExternalRanker:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = create_mock_completion(content)
        return ExternalRanker(api_key="test-key")

    def test_returned_order_is_kept(self, mock_openai_class: MagicMock) -> None:
        ranker = self.make_ranker(mock_openai_class, "c, a, b")
        self.assertEqual(ranker.rank(self.batch, self.weights), Ok(["c", "a", "b"]))

    def test_missing_ids_are_appended_in_computed_order(self, mock_openai_class: MagicMock) -> None:
        ranker = self.make_ranker(mock_openai_class, "b")
        self.assertEqual(ranker.rank(self.batch, self.weights).value, ["b", "a", "c"])

    def test_unknown_and_duplicate_ids_are_dropped(self, mock_openai_class: MagicMock) -> None:
        ranker = self.make_ranker(mock_openai_class, "c, zzz, c, a")
        self.assertEqual(ranker.rank(self.batch, self.weights).value, ["c", "a", "b"])

    def test_single_api_call(self, mock_openai_class: MagicMock) -> None:
        ranker = self.make_ranker(mock_openai_class, "a,b,c")

        ranker.rank(self.batch, self.weights)

        mock_openai_class.return_value.chat.completions.create.assert_called_once()

    def test_empty_response(self, mock_openai_class: MagicMock) -> None:
        ranker = self.make_ranker(mock_openai_class, "   ")
        self.assertEqual(ranker.rank(self.batch, self.weights).error.code, "EMPTY_RESPONSE")

    def test_no_known_ids_is_malformed(self, mock_openai_class: MagicMock) -> None:
        ranker = self.make_ranker(mock_openai_class, "I think you should do the report first.")
        self.assertEqual(ranker.rank(self.batch, self.weights).error.code, "MALFORMED_RESPONSE")


# ===========================================================================
# FAILURE PATH
# ===========================================================================


@patch("tasks.ai_engine.external_ranker.OpenAI")
class TestFailures(RankerTestCase):

    def rank_with_error(self, mock_openai_class: MagicMock, error: Exception):
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.side_effect = error
        return ExternalRanker(api_key="test-key").rank(self.batch, self.weights)

    def status_response(self, status_code: int) -> MagicMock:
        mock_response = MagicMock()
        mock_response.status_code = status_code
        return mock_response

    def test_timeout(self, mock_openai_class: MagicMock) -> None:
        from openai import APITimeoutError

        result = self.rank_with_error(mock_openai_class, APITimeoutError(request=MagicMock()))
        self.assertEqual(result.error.code, "TIMEOUT")

    def test_connection_error(self, mock_openai_class: MagicMock) -> None:
        from openai import APIConnectionError

        result = self.rank_with_error(mock_openai_class, APIConnectionError(request=MagicMock()))
        self.assertEqual(result.error.code, "CONNECTION_ERROR")

    def test_rate_limit(self, mock_openai_class: MagicMock) -> None:
        from openai import RateLimitError

        error = RateLimitError(
            message="Rate limit exceeded", response=self.status_response(429), body=None
        )
        self.assertEqual(self.rank_with_error(mock_openai_class, error).error.code, "RATE_LIMIT")

    def test_authentication(self, mock_openai_class: MagicMock) -> None:
        from openai import AuthenticationError

        error = AuthenticationError(
            message="Invalid key", response=self.status_response(401), body=None
        )
        self.assertEqual(self.rank_with_error(mock_openai_class, error).error.code, "AUTH_ERROR")

    def test_other_status(self, mock_openai_class: MagicMock) -> None:
        from openai import APIStatusError

        error = APIStatusError(message="Bad gateway", response=self.status_response(502), body=None)
        self.assertEqual(self.rank_with_error(mock_openai_class, error).error.code, "API_ERROR_502")

    def test_unexpected(self, mock_openai_class: MagicMock) -> None:
        result = self.rank_with_error(mock_openai_class, KeyError("choices"))
        self.assertEqual(result.error.code, "UNEXPECTED_ERROR")


# ===========================================================================
# CACHING
# ===========================================================================


@patch("tasks.ai_engine.external_ranker.OpenAI")
class TestRankingCache(RankerTestCase):

    def test_success_is_cached(self, mock_openai_class: MagicMock) -> None:
        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = create_mock_completion("b, a, c")
        ranker = ExternalRanker(api_key="test-key")

        first = ranker.rank(self.batch, self.weights)
        second = ranker.rank(self.batch, self.weights)

        self.assertEqual(first, second)
        self.assertEqual(mock_client.chat.completions.create.call_count, 1)

    def test_failure_is_not_cached(self, mock_openai_class: MagicMock) -> None:
        from openai import APITimeoutError

        mock_client = MagicMock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.side_effect = [
            APITimeoutError(request=MagicMock()),
            create_mock_completion("c, b, a"),
        ]
        ranker = ExternalRanker(api_key="test-key")

        self.assertFalse(ranker.rank(self.batch, self.weights).is_ok)
        self.assertEqual(ranker.rank(self.batch, self.weights), Ok(["c", "b", "a"]))


class TestRankingCacheKeys(SimpleTestCase):

    def test_key_depends_on_prompt_and_version(self) -> None:
        v1 = RankingCache(ttl=60, version="v1")
        v2 = RankingCache(ttl=60, version="v2")

        self.assertNotEqual(v1._generate_key("p"), v1._generate_key("q"))
        self.assertNotEqual(v1._generate_key("p"), v2._generate_key("p"))
        self.assertTrue(v1._generate_key("p").startswith("ai_rank_v1_"))


# ===========================================================================
# PROMPT & MERGING
# ===========================================================================


class TestPromptAndMerge(SimpleTestCase):

    def test_prompt_is_deterministic(self) -> None:
        batch = scored_batch("a", "b")
        self.assertEqual(build_prompt(batch, AdaptiveWeights()), build_prompt(batch, AdaptiveWeights()))

    def test_prompt_contents(self) -> None:
        prompt = build_prompt(scored_batch("a"), AdaptiveWeights())

        self.assertIn("Task ID: a", prompt)
        self.assertIn("Due: 2024-01-20", prompt)
        self.assertIn("Priority: High", prompt)
        self.assertIn("urgency=50.0", prompt)
        self.assertIn("urgency 35%", prompt)
        self.assertIn("comma-separated", prompt)

    def test_merge_tolerates_quotes_and_spaces(self) -> None:
        self.assertEqual(merge_ranking(' "b" , [a]', ["a", "b"]), Ok(["b", "a"]))

    def test_merge_empty(self) -> None:
        self.assertEqual(
            merge_ranking("", ["a"]),
            Err(RankerFailure("EMPTY_RESPONSE", "External ranker returned no content")),
        )
