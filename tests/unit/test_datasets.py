"""
Unit tests for the fixed eval datasets.
"""

import pytest

from brag_pipeline.evals.datasets import SUITES, get_suite, suite_kind
from brag_pipeline.prompts.extract_achievements import build_extraction_prompt
from brag_pipeline.prompts.extract_commit_achievements import build_commit_extraction_prompt
from brag_pipeline.prompts.generate_document import build_document_prompt


def _render(case):
    if "commits" in case.task_input:
        return build_commit_extraction_prompt(**case.task_input)
    if case.metadata["kind"] == "document":
        return build_document_prompt(**case.task_input)
    return build_extraction_prompt(**case.task_input)


class TestSuites:
    @pytest.mark.parametrize("name", sorted(SUITES))
    def test_every_case_renders_deterministically(self, name):
        for case in get_suite(name):
            assert _render(case) == _render(case)

    def test_case_ids_unique_across_suites(self):
        ids = [case.case_id for cases in SUITES.values() for case in cases]
        assert len(ids) == len(set(ids))

    def test_suite_kinds(self):
        assert suite_kind("chat-extraction") == "extraction"
        assert suite_kind("commit-extraction") == "extraction"
        assert suite_kind("weekly-document") == "document"

    def test_unknown_suite(self):
        with pytest.raises(ValueError, match="Unknown eval suite"):
            get_suite("nope")

    def test_cases_are_read_only(self):
        case = get_suite("chat-extraction")[0]

        with pytest.raises(TypeError):
            case.task_input["message"] = "changed"

    def test_weekly_prompt_carries_user_instructions(self):
        prompt = _render(get_suite("weekly-document")[0])

        assert '<user-instructions>For weekly documents, always use the title "Weekly Summary"</user-instructions>' in prompt
        assert prompt.index("<title>Implemented feature</title>") < prompt.index("<title>Researched</title>")
