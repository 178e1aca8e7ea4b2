"""
Unit tests for the document and standup prompts.

Tests cover:
1. Achievements presented in non-decreasing event_start order
2. User instructions rendered ahead of (and prioritized over) the defaults
3. Optional project/company/chat context
"""

import random
import re
from datetime import date, timedelta

import pytest

from brag_pipeline.prompts.generate_document import (
    USER_INSTRUCTIONS_PRIORITY,
    build_document_prompt,
    sort_achievements,
)
from brag_pipeline.prompts.standup import build_standup_prompt

from fixtures.sample_records import (
    SAMPLE_COMPANY,
    SAMPLE_PROJECT,
    TODAY,
    make_achievement,
    make_history,
    make_user,
)

EVENT_START_RE = re.compile(r"<event-start(?:>([0-9-]+)</event-start>| />)")
TITLE_RE = re.compile(r"<title>(.*?)</title>")


def _achievements_section(prompt: str) -> str:
    variables = prompt.split("<variables>")[1]
    return variables.split("<achievements>")[1].split("</achievements>")[0]


def _event_starts(prompt: str):
    return [m or None for m in EVENT_START_RE.findall(_achievements_section(prompt))]


def _build(achievements, **kwargs):
    params = dict(user=make_user(), doc_title="Q1 Review", days=90, achievements=achievements, today=TODAY)
    params.update(kwargs)
    return build_document_prompt(**params)


class TestAchievementOrdering:
    """Achievements are rendered oldest first."""

    def test_sorted_by_event_start(self):
        achievements = [
            make_achievement(1, date(2025, 3, 2)),
            make_achievement(2, date(2025, 1, 15)),
            make_achievement(3, date(2025, 2, 20)),
        ]

        prompt = _build(achievements)

        assert TITLE_RE.findall(_achievements_section(prompt)) == [
            "Achievement 2", "Achievement 3", "Achievement 1",
        ]

    def test_undated_achievements_last_in_input_order(self):
        achievements = [
            make_achievement(1),
            make_achievement(2, date(2025, 1, 1)),
            make_achievement(3),
        ]

        titles = [a.title for a in sort_achievements(achievements)]

        assert titles == ["Achievement 2", "Achievement 1", "Achievement 3"]

    def test_ties_keep_input_order(self):
        day = date(2025, 2, 1)
        achievements = [make_achievement(i, day) for i in (5, 2, 9)]

        assert [a.id for a in sort_achievements(achievements)] == ["a-5", "a-2", "a-9"]

    @pytest.mark.parametrize("seed", range(20))
    def test_random_sets_render_non_decreasing(self, seed):
        rng = random.Random(seed)
        base = date(2024, 1, 1)
        achievements = [
            make_achievement(
                i,
                None if rng.random() < 0.2 else base + timedelta(days=rng.randint(0, 365)),
            )
            for i in range(rng.randint(1, 15))
        ]

        starts = _event_starts(_build(achievements))

        assert len(starts) == len(achievements)
        dated = [s for s in starts if s is not None]
        assert dated == sorted(dated)
        # Undated ones only after every dated one
        if None in starts:
            assert all(s is None for s in starts[starts.index(None):])

    def test_empty_achievements(self):
        prompt = _build([])
        assert "<achievements />" in prompt.split("<variables>")[1]


class TestUserInstructions:
    """User instructions are highest priority."""

    def test_weekly_update_scenario(self):
        achievement = make_achievement(1, date(2025, 3, 10), title="Shipped saved carts")

        prompt = build_document_prompt(
            user=make_user(),
            doc_title="Weekly Update",
            days=7,
            achievements=[achievement],
            user_instructions='Always use the title "Weekly Update"',
            today=TODAY,
        )
        lines = prompt.split("\n")

        # Achievement nested under the <achievements> root
        root = lines.index("  <achievements>")
        assert lines[root + 1] == "    <achievement>"
        assert "      <title>Shipped saved carts</title>" in lines[root + 2:lines.index("  </achievements>")]

        # User instructions come before the default instructions
        assert '<user-instructions>Always use the title "Weekly Update"</user-instructions>' in lines
        assert prompt.index("<user-instructions>") < prompt.index("<instructions>")

        instructions = prompt.split("<instructions>")[1].split("</instructions>")[0]
        assert USER_INSTRUCTIONS_PRIORITY in instructions
        assert instructions.index(USER_INSTRUCTIONS_PRIORITY) < instructions.index("Markdown is supported")

        assert "<document-title>Weekly Update</document-title>" in prompt
        assert "<days>7</days>" in prompt

    def test_no_instructions_no_priority_statement(self):
        prompt = _build([make_achievement(1)])

        assert "\n<user-instructions>" not in prompt
        assert USER_INSTRUCTIONS_PRIORITY not in prompt

    def test_falls_back_to_standing_preferences(self):
        prompt = _build([], user=make_user(instructions="Write in bullet points"))

        assert "\n<user-instructions>Write in bullet points</user-instructions>" in prompt
        assert USER_INSTRUCTIONS_PRIORITY in prompt

    def test_explicit_instructions_override_preferences(self):
        prompt = _build(
            [],
            user=make_user(instructions="Write in bullet points"),
            user_instructions="Use prose only",
        )

        assert "<user-instructions>Use prose only</user-instructions>" in prompt
        assert "Write in bullet points" not in prompt

    def test_blank_instructions_treated_as_absent(self):
        prompt = _build([], user_instructions="   ")
        assert USER_INSTRUCTIONS_PRIORITY not in prompt


class TestDocumentContext:
    def test_language_and_scope(self):
        prompt = _build([], user=make_user(language="de"), project=SAMPLE_PROJECT, company=SAMPLE_COMPANY)
        variables = prompt.split("<variables>")[1]

        assert "<language>de</language>" in variables
        assert "<project>" in variables
        assert "<company>" in variables

    def test_absent_project_and_company_omitted(self):
        variables = _build([]).split("<variables>")[1]

        assert "<project>" not in variables
        assert "<company>" not in variables

    def test_chat_history_rendered(self):
        prompt = _build([], chat_history=make_history(2))

        assert "<message>user: turn 0</message>" in prompt
        assert "<message>assistant: turn 1</message>" in prompt

    def test_open_ended_achievement_renders_present(self):
        section = _achievements_section(_build([make_achievement(1, date(2025, 1, 1))]))
        assert "<event-end>Present</event-end>" in section


class TestStandupPrompt:
    def test_achievements_oldest_first(self):
        prompt = build_standup_prompt([
            make_achievement(1, date(2025, 3, 12)),
            make_achievement(2, date(2025, 3, 11)),
        ])

        assert prompt.index("Achievement 2") < prompt.index("Achievement 1")

    def test_instructions_optional(self):
        assert "<user-instructions>" not in build_standup_prompt([make_achievement(1)])
        assert "<user-instructions>Mention blockers</user-instructions>" in build_standup_prompt(
            [make_achievement(1)], instructions="Mention blockers"
        )
