"""
Unit tests for the chat extraction prompt.

Tests cover:
1. Chat history window: turn and character budgets, newest turns retained
2. Prompt layout: variables, user input, examples, today
3. Explicit renderer parameter
"""

import random
import re

import pytest

from brag_pipeline.common.types import ChatRole, ChatTurn
from brag_pipeline.prompts import elements
from brag_pipeline.prompts.extract_achievements import build_extraction_prompt, select_chat_window
from brag_pipeline.prompts.renderer import Leaf, Node, iter_fragments

from fixtures.sample_records import (
    FORMER_COMPANY,
    SAMPLE_COMPANY,
    SAMPLE_PROJECT,
    TODAY,
    make_history,
    make_turn,
    make_user,
)

MESSAGE_RE = re.compile(r"<message>(.*?)</message>")


def _history_section(prompt: str) -> str:
    """Rendered history lines; <input-format> also has a <chat-history> leaf, so skip past <variables>."""
    variables = prompt.split("<variables>")[1]
    if "<chat-history />" in variables.split("<companies>")[0]:
        return ""
    body = variables.split("<chat-history>")[1].split("</chat-history>")[0]
    # Drop the newline after the opening tag and the closing tag's indentation
    return "\n".join(body.split("\n")[1:-1])


def _history_messages(prompt: str):
    return MESSAGE_RE.findall(_history_section(prompt))


def _build(history, **kwargs):
    return build_extraction_prompt(
        user=make_user(),
        message="I shipped the saved-carts feature today",
        chat_history=history,
        projects=[SAMPLE_PROJECT],
        companies=[SAMPLE_COMPANY],
        today=TODAY,
        **kwargs,
    )


class TestSelectChatWindow:
    """Tests for chat history truncation."""

    def test_under_budget_keeps_everything(self):
        history = make_history(5)

        window = select_chat_window(history, max_turns=20, max_chars=10_000)

        assert window.turns == tuple(history)
        assert window.dropped == 0

    def test_turn_budget_drops_oldest(self):
        history = make_history(30)

        window = select_chat_window(history, max_turns=20, max_chars=10_000)

        assert window.turns == tuple(history[10:])
        assert window.dropped == 10

    def test_char_budget_drops_oldest(self):
        # 4 indent + <message> + "user: " + 94 chars + </message> + newline = 124
        history = [make_turn(i, text=str(i % 10) * 94) for i in range(10)]

        window = select_chat_window(history, max_turns=20, max_chars=500)

        assert window.turns == tuple(history[6:])
        assert window.char_count == 496
        assert window.dropped == 6

    def test_cost_is_rendered_message_block(self):
        one_line = make_turn(0, text="hello")
        multi_line = make_turn(1, text="first\nsecond")

        assert elements.chat_turn_cost(one_line, 2) == len("    <message>user: hello</message>") + 1
        assert elements.chat_turn_cost(multi_line, 2) == len(
            "    <message>\n      user: first\n      second\n    </message>"
        ) + 1

    def test_multi_line_turn_charged_for_indentation(self):
        # 40 one-char lines: 80 chars raw, far more once every line is indented
        turn = make_turn(0, text="\n".join(["x"] * 40))
        assert len(elements.format_chat_turn(turn)) < 100

        window = select_chat_window([turn], max_turns=20, max_chars=100)

        assert window.turns == ()
        assert window.dropped == 1
        assert window.char_count == 0

    def test_oversized_newest_turn_empties_window(self):
        history = [make_turn(0, text="short"), make_turn(1, text="x" * 500)]

        window = select_chat_window(history, max_turns=20, max_chars=100)

        assert window.turns == ()
        assert window.dropped == 2

    def test_window_stays_contiguous(self):
        # A short old turn must not be kept once a newer turn has been dropped
        history = [make_turn(0, text="a"), make_turn(1, text="x" * 200), make_turn(2, text="b")]

        window = select_chat_window(history, max_turns=20, max_chars=50)

        assert window.turns == (history[2],)

    def test_zero_turn_budget(self):
        window = select_chat_window(make_history(3), max_turns=0, max_chars=10_000)
        assert window.turns == ()
        assert window.dropped == 3

    def test_defaults_come_from_config(self):
        window = select_chat_window(make_history(25))
        assert len(window.turns) == 20

    @pytest.mark.parametrize("seed", range(30))
    def test_random_histories_respect_budget_and_keep_newest(self, seed):
        rng = random.Random(seed)
        history = [
            ChatTurn(
                id=str(i),
                role=rng.choice([ChatRole.USER, ChatRole.ASSISTANT]),
                text="\n".join("w" * rng.randint(1, 80) for _ in range(rng.randint(1, 4))),
            )
            for i in range(rng.randint(0, 40))
        ]
        max_turns = rng.randint(0, 25)
        max_chars = rng.randint(0, 3000)

        window = select_chat_window(history, max_turns=max_turns, max_chars=max_chars)
        kept = list(window.turns)

        assert len(kept) <= max_turns
        assert window.char_count <= max_chars
        # Retained turns are the most recent ones, in chronological order
        assert kept == (history[len(history) - len(kept):] if kept else [])
        assert window.dropped == len(history) - len(kept)

        # Maximal: the next older turn would break a budget
        if window.dropped:
            next_turn = history[len(history) - len(kept) - 1]
            next_cost = elements.chat_turn_cost(next_turn, 2)
            assert len(kept) + 1 > max_turns or window.char_count + next_cost > max_chars


class TestBuildExtractionPrompt:
    """Tests for the assembled chat extraction prompt."""

    def test_history_in_prompt_is_bounded_and_newest(self):
        history = make_history(30)

        prompt = _build(history, max_turns=5)
        messages = _history_messages(prompt)

        assert messages == [elements.format_chat_turn(t) for t in history[-5:]]

    def test_history_char_budget_in_prompt(self):
        history = [make_turn(i, text="z" * 94) for i in range(12)]

        prompt = _build(history, max_chars=400)

        assert len(_history_section(prompt)) <= 400
        assert len(_history_messages(prompt)) == 3

    @pytest.mark.parametrize("max_chars", [100, 300, 1000, 5000])
    def test_multi_line_history_stays_within_budget(self, max_chars):
        history = [
            make_turn(i, text="\n".join(f"line {j} of turn {i}" for j in range(1 + i % 7)))
            for i in range(30)
        ]

        prompt = _build(history, max_chars=max_chars)
        section = _history_section(prompt)

        assert len(section) <= max_chars
        window = select_chat_window(history, max_chars=max_chars)
        assert section.count("<message>") == len(window.turns)

    def test_oversized_multi_line_turn_is_dropped(self):
        history = [make_turn(0, text="\n".join(["x"] * 40))]

        prompt = _build(history, max_chars=100)

        assert _history_section(prompt) == ""
        assert "<chat-history />" in prompt.split("<variables>")[1]

    def test_message_rendered_as_user_input(self):
        prompt = _build([])

        assert "<user-input>I shipped the saved-carts feature today</user-input>" in prompt
        assert "<chat-history />" in prompt

    def test_context_records_rendered(self):
        prompt = build_extraction_prompt(
            user=make_user(instructions="Keep titles short"),
            message="Did a thing",
            chat_history=[],
            projects=[SAMPLE_PROJECT],
            companies=[SAMPLE_COMPANY, FORMER_COMPANY],
            today=TODAY,
        )

        assert "<today>2025-03-14</today>" in prompt
        assert "<user-instructions>Keep titles short</user-instructions>" in prompt
        assert "<name>Checkout Revamp</name>" in prompt
        assert "<remote-url>https://github.com/acme/checkout</remote-url>" in prompt
        # Current employer is open-ended, former one has an end date
        assert prompt.count("<end-date>Present</end-date>") == 2  # company + project
        assert "<end-date>2022-03-31</end-date>" in prompt
        variables = prompt.split("<variables>")[1]
        assert variables.index("<companies>") < variables.index("<projects>") < variables.index("<user-input>")

    def test_default_examples_included(self):
        prompt = _build([])

        assert prompt.count("<example>") == 3
        assert "Quantum Nexus" in prompt

    def test_custom_examples(self):
        prompt = _build([], examples=[{"title": "Example title"}])

        assert prompt.count("<example>") == 1
        assert '"title": "Example title"' in prompt

    def test_prompt_is_deterministic_with_fixed_today(self):
        history = make_history(4)
        assert _build(history) == _build(history)

    def test_explicit_renderer_receives_layout(self):
        captured = []

        def renderer(layout):
            captured.append(layout)
            return "RENDERED"

        prompt = _build(make_history(2), renderer=renderer)

        assert prompt == "RENDERED"
        tags = [f.tag for f in iter_fragments(captured[0])]
        assert tags[:3] == ["purpose", "instructions", "instruction"]
        assert "user-input" in tags
        user_input = next(f for f in iter_fragments(captured[0]) if f.tag == "user-input")
        assert isinstance(user_input, Leaf)
        variables = next(f for f in captured[0] if isinstance(f, Node) and f.tag == "variables")
        assert [c.tag for c in variables.children] == [
            "today", "user-instructions", "chat-history", "companies", "projects", "user-input",
        ]
