"""
Unit tests for the achievement extraction engine.

Tests cover:
1. Empty vs. failure distinction
2. One corrective retry on schema violations
3. Transport errors and timeouts (distinct reasons, not retried)
4. Impact tagging (model-judged vs default)
5. Commit extraction scenario with a null entry for a duplicate commit
6. Streaming interface and cancellation
"""

import asyncio
import json
from datetime import date

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from brag_pipeline.common.error_handling import ExtractionError, FailureReason
from brag_pipeline.common.types import EVENT_DURATIONS
from brag_pipeline.extraction.extractor import AchievementExtractor, extract_achievements
from brag_pipeline.extraction.results import (
    EmptyExtraction,
    ExtractionFailed,
    ExtractionSucceeded,
)
from brag_pipeline.extraction.schemas import AchievementResponseModel
from brag_pipeline.prompts.extract_commit_achievements import build_commit_extraction_prompt

from fixtures.sample_records import (
    SAMPLE_COMPANY,
    SAMPLE_PROJECT,
    SAMPLE_REPOSITORY,
    TODAY,
    make_commit,
    make_user,
)
from helpers.fake_llm import FakeChatModel, achievements_json

PROMPT = "<user-input>I shipped the saved-carts feature</user-input>"


def _extractor(llm, **kwargs):
    return AchievementExtractor(llm=llm, **kwargs)


class TestEmptyVersusFailure:
    """Empty results are successes; malformed output is a failure."""

    @pytest.mark.asyncio
    async def test_empty_achievements_is_empty_success(self):
        llm = FakeChatModel(responses=['{"achievements": []}'])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, EmptyExtraction)
        assert isinstance(result, ExtractionSucceeded)
        assert not isinstance(result, ExtractionFailed)
        assert result.achievements == ()
        assert result.is_empty
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_all_null_entries_is_empty_success(self):
        llm = FakeChatModel(responses=['{"achievements": [null, null]}'])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, EmptyExtraction)

    @pytest.mark.asyncio
    async def test_malformed_twice_fails_with_schema_violation(self):
        bad = json.dumps({"achievements": [{"title": "Did a thing", "impact": "very high"}]})
        llm = FakeChatModel(responses=[bad, bad])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionFailed)
        assert result.failure.reason == FailureReason.SCHEMA_VIOLATION
        assert result.failure.stage == "extraction"
        assert "impact" in result.failure.message
        assert result.attempts == 2
        assert result.raw_output == bad
        assert not hasattr(result, "achievements")
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_non_json_twice_fails_with_schema_violation(self):
        llm = FakeChatModel(responses=["I could not find anything.", "Still nothing, sorry."])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionFailed)
        assert result.failure.reason == FailureReason.SCHEMA_VIOLATION
        with pytest.raises(AttributeError):
            result.achievements

    @pytest.mark.asyncio
    async def test_missing_achievements_key_is_violation(self):
        llm = FakeChatModel(responses=['{"items": []}', '{"items": []}'])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionFailed)
        assert result.failure.reason == FailureReason.SCHEMA_VIOLATION


class TestCorrectiveRetry:
    """A schema violation gets exactly one corrective retry."""

    @pytest.mark.asyncio
    async def test_retry_succeeds(self):
        bad = '{"achievements": [{"summary": "no title here"}]}'
        llm = FakeChatModel(responses=[bad, achievements_json("Shipped saved carts", impact=4)])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionSucceeded)
        assert result.attempts == 2
        assert [a.title for a in result.achievements] == ["Shipped saved carts"]

    @pytest.mark.asyncio
    async def test_retry_sends_previous_output_and_errors(self):
        bad = '{"achievements": [{"summary": "no title here"}]}'
        llm = FakeChatModel(responses=[bad, achievements_json("Shipped saved carts")])

        await _extractor(llm).extract(PROMPT)

        first, second = llm.calls
        assert isinstance(first[0], SystemMessage)
        assert isinstance(first[1], HumanMessage)
        assert first[1].content == PROMPT
        assert len(first) == 2

        assert second[:2] == first
        assert isinstance(second[2], AIMessage)
        assert second[2].content == bad
        assert isinstance(second[3], HumanMessage)
        assert "previous output was invalid" in second[3].content
        assert "title" in second[3].content

    @pytest.mark.asyncio
    async def test_retry_budget_from_step_config(self, monkeypatch):
        monkeypatch.setenv("LLM_RETRIES_extract_achievements", "0")
        llm = FakeChatModel(responses=["not json", achievements_json("Never reached")])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionFailed)
        assert result.attempts == 1
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_system_prompt_carries_schema(self):
        llm = FakeChatModel(responses=['{"achievements": []}'])

        await _extractor(llm).extract(PROMPT)

        system = llm.calls[0][0].content
        assert '"achievements"' in system
        assert "event_duration" in system


class TestTransportAndTimeout:
    """Transport errors and timeouts are distinct and never retried."""

    @pytest.mark.asyncio
    async def test_transport_error(self):
        llm = FakeChatModel(responses=[ConnectionError("connection reset by peer")])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionFailed)
        assert result.failure.reason == FailureReason.TRANSPORT
        assert "connection reset" in result.failure.message
        assert result.attempts == 1
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_timeout(self):
        llm = FakeChatModel(responses=[achievements_json("Too late")], delay=1.0)

        result = await _extractor(llm).extract(PROMPT, timeout=0.05)

        assert isinstance(result, ExtractionFailed)
        assert result.failure.reason == FailureReason.TIMEOUT
        assert len(llm.calls) == 1

    @pytest.mark.asyncio
    async def test_provider_timeout_error_maps_to_timeout(self):
        llm = FakeChatModel(responses=[TimeoutError("read timed out")])

        result = await _extractor(llm).extract(PROMPT)

        assert result.failure.reason == FailureReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        llm = FakeChatModel(responses=[achievements_json("Never")], delay=10.0)
        task = asyncio.create_task(_extractor(llm).extract(PROMPT, timeout=30))
        await asyncio.sleep(0.01)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestAchievementFields:
    """Field validation and impact tagging."""

    @pytest.mark.asyncio
    async def test_model_impact_tagged_llm(self):
        llm = FakeChatModel(responses=[achievements_json("Cut p95 latency by 40%", impact=7)])

        result = await _extractor(llm).extract(PROMPT)
        achievement = result.achievements[0]

        assert achievement.impact == 7
        assert achievement.impact_source == "llm"
        assert achievement.source_type == "llm"

    @pytest.mark.asyncio
    async def test_missing_impact_uses_default_and_is_tagged(self):
        llm = FakeChatModel(responses=[achievements_json("Wrote runbook")])

        result = await _extractor(llm).extract(PROMPT)
        achievement = result.achievements[0]

        assert achievement.impact == 5
        assert achievement.impact_source == "default"

    @pytest.mark.asyncio
    async def test_custom_default_impact(self):
        llm = FakeChatModel(responses=[achievements_json("Wrote runbook")])

        result = await _extractor(llm, default_impact=2).extract(PROMPT)

        assert result.achievements[0].impact == 2

    @pytest.mark.asyncio
    async def test_camel_case_fields_and_dates(self):
        payload = {
            "achievements": [{
                "title": "- Migrated billing to Stripe",
                "summary": "Moved all plans",
                "eventStart": "2025-03-01T09:00:00Z",
                "eventEnd": "",
                "eventDuration": "week",
                "companyId": "c-1",
                "projectId": "null",
                "impact": 8,
            }]
        }
        llm = FakeChatModel(responses=[json.dumps(payload)])

        result = await _extractor(llm).extract(PROMPT)
        achievement = result.achievements[0]

        assert achievement.title == "Migrated billing to Stripe"
        assert achievement.event_start == date(2025, 3, 1)
        assert achievement.event_end is None
        assert achievement.event_duration == "week"
        assert achievement.company_id == "c-1"
        assert achievement.project_id is None

    @pytest.mark.asyncio
    async def test_markdown_wrapped_and_bare_list_accepted(self):
        wrapped = "```json\n" + json.dumps([{"title": "Bare list entry"}]) + "\n```"
        llm = FakeChatModel(responses=[wrapped])

        result = await _extractor(llm).extract(PROMPT)

        assert [a.title for a in result.achievements] == ["Bare list entry"]

    @pytest.mark.asyncio
    async def test_impact_out_of_range_is_violation(self):
        bad = achievements_json("Too big", impact=11)
        llm = FakeChatModel(responses=[bad, bad])

        result = await _extractor(llm).extract(PROMPT)

        assert result.failure.reason == FailureReason.SCHEMA_VIOLATION

    @pytest.mark.parametrize("duration", EVENT_DURATIONS)
    def test_every_event_duration_accepted(self, duration):
        model = AchievementResponseModel.model_validate({"title": "Did it", "eventDuration": duration})

        assert model.to_extracted(5).event_duration == duration

    @pytest.mark.asyncio
    async def test_unknown_event_duration_is_violation(self):
        bad = json.dumps({"achievements": [{"title": "Did it", "eventDuration": "fortnight"}]})
        llm = FakeChatModel(responses=[bad, bad])

        result = await _extractor(llm).extract(PROMPT)

        assert isinstance(result, ExtractionFailed)
        assert result.failure.reason == FailureReason.SCHEMA_VIOLATION


class TestCommitScenario:
    """Three commits, one duplicate; the model returns null for the duplicate."""

    @pytest.mark.asyncio
    async def test_duplicate_commit_yields_two_candidates(self):
        commits = [
            make_commit(1, message="fix auth bug"),
            make_commit(2, message="add login form"),
            make_commit(3, message="add login form"),
        ]
        prompt = build_commit_extraction_prompt(
            user=make_user(),
            companies=[SAMPLE_COMPANY],
            projects=[SAMPLE_PROJECT],
            repository=SAMPLE_REPOSITORY,
            commits=commits,
            today=TODAY,
        )
        response = json.dumps({
            "achievements": [
                {"title": "Fixed authentication bug", "impact": 3},
                {"title": "Added login form", "impact": 2},
                None,
            ]
        })
        llm = FakeChatModel(responses=[response])

        candidates = [
            a async for a in AchievementExtractor(llm=llm, step_name="extract_commit_achievements").stream(prompt)
        ]

        assert [c.title for c in candidates] == ["Fixed authentication bug", "Added login form"]
        assert all(c.source_type == "llm" for c in candidates)
        assert all(c.impact_source == "llm" for c in candidates)
        assert llm.calls[0][1].content == prompt


class TestStreamingInterface:
    @pytest.mark.asyncio
    async def test_stream_yields_each_achievement(self):
        llm = FakeChatModel(responses=[achievements_json("One", "Two", "Three")])

        titles = [a.title async for a in _extractor(llm).stream(PROMPT)]

        assert titles == ["One", "Two", "Three"]

    @pytest.mark.asyncio
    async def test_stream_empty_yields_nothing(self):
        llm = FakeChatModel(responses=['{"achievements": []}'])

        assert [a async for a in _extractor(llm).stream(PROMPT)] == []

    @pytest.mark.asyncio
    async def test_stream_failure_raises_extraction_error(self):
        llm = FakeChatModel(responses=[ConnectionError("down")])

        with pytest.raises(ExtractionError) as exc_info:
            [a async for a in _extractor(llm).stream(PROMPT)]

        assert exc_info.value.reason == FailureReason.TRANSPORT
        assert isinstance(exc_info.value.result, ExtractionFailed)

    @pytest.mark.asyncio
    async def test_module_function(self):
        llm = FakeChatModel(responses=[achievements_json("Via helper")])

        result = await extract_achievements(PROMPT, llm=llm)

        assert isinstance(result, ExtractionSucceeded)


class TestConcurrentCalls:
    @pytest.mark.asyncio
    async def test_concurrent_extractions_are_independent(self):
        good = FakeChatModel(responses=[achievements_json("Good")])
        broken = FakeChatModel(responses=["nope", "still nope"])

        ok_result, bad_result = await asyncio.gather(
            AchievementExtractor(llm=good).extract(PROMPT),
            AchievementExtractor(llm=broken).extract(PROMPT),
        )

        assert isinstance(ok_result, ExtractionSucceeded)
        assert isinstance(bad_result, ExtractionFailed)
        assert bad_result.attempts == 2

    @pytest.mark.asyncio
    async def test_one_instance_many_calls(self):
        llm = FakeChatModel(responses=[
            achievements_json("First"),
            achievements_json("Second"),
        ])
        extractor = _extractor(llm)

        results = await asyncio.gather(extractor.extract(PROMPT), extractor.extract(PROMPT))

        titles = sorted(r.achievements[0].title for r in results)
        assert titles == ["First", "Second"]
        assert all(r.attempts == 1 for r in results)
