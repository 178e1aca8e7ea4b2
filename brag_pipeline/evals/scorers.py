"""
Scoring functions for extraction and document evals.

All scores are normalized to 0.0-1.0 where higher is better:
1. AchievementSetScorer: extracted titles vs expected titles (F1 over matched pairs)
2. DocumentStructureScorer: headings, title, required phrases, coverage, fluff
3. LLMClassifierScorer: an LLM judge picks a grade (A-E) mapped to a score

A scorer exposes `name` and `score(case, output)`; `score` may be async.
"""

import re
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from brag_pipeline.common.llm_factory import create_llm, message_text
from brag_pipeline.evals.cases import EvalCase
from brag_pipeline.prompts import elements
from brag_pipeline.prompts.renderer import Leaf, Renderer, render_prompt


# Boilerplate phrases a no-fluff document should avoid
GENERIC_PHRASES = [
    "game changer",
    "game-changer",
    "proven track record",
    "passionate about",
    "synergy",
    "world-class",
    "best-in-class",
    "rockstar",
    "ninja",
    "cutting-edge",
    "tireless",
    "went above and beyond",
    "exceeded all expectations",
    "incredible",
    "amazing",
]

# Grades used by the LLM judges
CHOICE_SCORES: Dict[str, float] = {
    "A": 1.0,  # Perfect match
    "B": 0.8,  # Good but missing details
    "C": 0.6,  # Minor issues
    "D": 0.3,  # Major issues
    "E": 0.0,  # Completely wrong
}


@dataclass
class ScoreResult:
    """Result from a scoring function."""
    score: float  # 0.0-1.0
    details: Dict[str, Any]
    feedback: str


def _normalize_text(text: str) -> str:
    """Lowercase and remove punctuation except hyphens."""
    text = text.lower()
    text = re.sub(r"[^\w\s-]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def _keywords(text: str) -> Set[str]:
    # Short words are mostly stop words
    return {w for w in _normalize_text(text).split() if len(w) > 3}


def title_similarity(a: str, b: str) -> float:
    """
    Similarity of two achievement titles (0-1).

    Combines keyword overlap (Jaccard) and character-level similarity,
    weighting keyword overlap higher.
    """
    kw_a, kw_b = _keywords(a), _keywords(b)
    keyword_score = len(kw_a & kw_b) / len(kw_a | kw_b) if kw_a and kw_b else 0.0
    string_score = SequenceMatcher(None, _normalize_text(a), _normalize_text(b)).ratio()
    return (keyword_score * 0.6) + (string_score * 0.4)


def _output_titles(output: Any) -> List[str]:
    titles = []
    for item in output or ():
        if isinstance(item, Mapping):
            titles.append(str(item.get("title", "")))
        else:
            titles.append(str(getattr(item, "title", "")))
    return titles


class AchievementSetScorer:
    """
    Compare extracted achievements to the expected set.

    Pairs are matched greedily by descending title similarity; a pair counts
    when its similarity reaches `match_threshold`. The score is the F1 of
    precision (matched / extracted) and recall (matched / expected).
    """

    name = "achievement_set"

    def __init__(self, match_threshold: float = 0.45):
        self.match_threshold = match_threshold

    def score(self, case: EvalCase, output: Any) -> ScoreResult:
        expected = [a.title for a in case.expected_achievements]
        extracted = _output_titles(output)

        if not expected and not extracted:
            return ScoreResult(score=1.0, details={"matches": []}, feedback="Correctly extracted nothing")
        if not expected or not extracted:
            return ScoreResult(
                score=0.0,
                details={"expected": len(expected), "extracted": len(extracted), "matches": []},
                feedback="Extracted achievements where none were expected" if extracted
                else "No achievements extracted",
            )

        candidates: List[Tuple[float, int, int]] = []
        for i, exp in enumerate(expected):
            for j, ext in enumerate(extracted):
                sim = title_similarity(exp, ext)
                if sim >= self.match_threshold:
                    candidates.append((sim, i, j))
        # Highest similarity first; index tiebreak keeps matching deterministic
        candidates.sort(key=lambda c: (-c[0], c[1], c[2]))

        used_expected: Set[int] = set()
        used_extracted: Set[int] = set()
        matches = []
        for sim, i, j in candidates:
            if i in used_expected or j in used_extracted:
                continue
            used_expected.add(i)
            used_extracted.add(j)
            matches.append({"expected": expected[i], "extracted": extracted[j], "similarity": round(sim, 4)})

        precision = len(matches) / len(extracted)
        recall = len(matches) / len(expected)
        f1 = (2 * precision * recall / (precision + recall)) if matches else 0.0

        details = {
            "expected": len(expected),
            "extracted": len(extracted),
            "precision": round(precision, 4),
            "recall": round(recall, 4),
            "matches": matches,
            "missed": [t for i, t in enumerate(expected) if i not in used_expected],
            "unexpected": [t for j, t in enumerate(extracted) if j not in used_extracted],
        }

        feedback_parts = []
        if details["missed"]:
            feedback_parts.append(f"Missed {len(details['missed'])} expected achievement(s)")
        if details["unexpected"]:
            feedback_parts.append(f"{len(details['unexpected'])} unexpected achievement(s)")
        feedback = "; ".join(feedback_parts) if feedback_parts else "All achievements matched"

        return ScoreResult(score=round(f1, 4), details=details, feedback=feedback)


class DocumentStructureScorer:
    """
    Score a generated markdown document against DocumentExpectations.

    Equal-weighted checks (each 0-1), averaged:
    - headings: at least `min_headings` markdown headings
    - title: first heading matches the expected title (if one is expected)
    - phrases: fraction of required phrases present
    - coverage: fraction of expected achievement titles covered
    - fluff: 1.0 minus 0.25 per generic phrase found
    - length: within `max_words` (if set)
    """

    name = "document_structure"

    def __init__(self, coverage_threshold: float = 0.5):
        self.coverage_threshold = coverage_threshold

    def _covered(self, title: str, text_keywords: Set[str]) -> bool:
        kw = _keywords(title)
        if not kw:
            return False
        return len(kw & text_keywords) / len(kw) >= self.coverage_threshold

    def score(self, case: EvalCase, output: Any) -> ScoreResult:
        text = output if isinstance(output, str) else str(output or "")
        expectations = case.expected_document
        if not text.strip():
            return ScoreResult(score=0.0, details={}, feedback="Empty document")
        if expectations is None:
            raise ValueError(f"Case {case.case_id} has no document expectations")

        text_lower = text.lower()
        headings = re.findall(r"^ {0,3}#{1,6}[ \t]+(.+?)[ \t]*#*[ \t]*$", text, re.MULTILINE)
        checks: Dict[str, float] = {}

        checks["headings"] = min(len(headings) / expectations.min_headings, 1.0) if expectations.min_headings else 1.0

        if expectations.title:
            first = headings[0].strip().lower() if headings else ""
            checks["title"] = 1.0 if first == expectations.title.strip().lower() else 0.0

        if expectations.required_phrases:
            found = [p for p in expectations.required_phrases if p.lower() in text_lower]
            checks["phrases"] = len(found) / len(expectations.required_phrases)

        if expectations.achievement_titles:
            text_keywords = _keywords(text)
            covered = [t for t in expectations.achievement_titles if self._covered(t, text_keywords)]
            checks["coverage"] = len(covered) / len(expectations.achievement_titles)

        fluff = [p for p in GENERIC_PHRASES if p in text_lower]
        checks["fluff"] = max(0.0, 1.0 - 0.25 * len(fluff))

        word_count = len(text.split())
        if expectations.max_words:
            checks["length"] = 1.0 if word_count <= expectations.max_words else expectations.max_words / word_count

        score = sum(checks.values()) / len(checks)

        feedback_parts = [f"{name} {value:.2f}" for name, value in checks.items() if value < 1.0]
        if fluff:
            feedback_parts.append(f"Generic phrases: {', '.join(fluff)}")
        feedback = "; ".join(feedback_parts) if feedback_parts else "All structure checks passed"

        return ScoreResult(
            score=round(score, 4),
            details={
                "checks": {k: round(v, 4) for k, v in checks.items()},
                "headings": headings,
                "fluff_found": fluff,
                "word_count": word_count,
            },
            feedback=feedback,
        )


EXTRACTION_JUDGE_PURPOSE = """You are evaluating how well an AI system extracted achievements from a
user message. Compare the extracted achievements with the expected output.
Consider that a single message may contain multiple achievements."""

EXTRACTION_JUDGE_INSTRUCTIONS = [
    """Compare the extracted achievements with the expected output. Consider:
1. Did the system extract all achievements mentioned in the message?
2. Are the titles clear and action-oriented?
3. Do the summaries capture key metrics and impact?
4. Is the duration appropriate for each achievement?""",
]

EXTRACTION_JUDGE_CHOICES = """Answer by selecting one of the following options:
(A) The extraction matches the expected output perfectly
(B) The extraction captures the main achievements but misses some details
(C) The extraction has minor inaccuracies but is generally correct
(D) The extraction misses key information or has significant inaccuracies
(E) The extraction is completely incorrect or misunderstands the achievements
Respond with the letter only, e.g. (B)."""

DOCUMENT_JUDGE_PURPOSE = """You are an evaluator assessing how well an AI system generated a document
based on user data and preferences. Evaluate if the generated document
follows the user's instructions and effectively presents their achievements."""

DOCUMENT_JUDGE_INSTRUCTIONS = [
    "Evaluate if the document follows the user's specified language and format preferences",
    "Check if achievements are properly grouped and prioritized",
    "Verify that impact metrics are appropriately highlighted",
    "Ensure the document maintains professionalism without unnecessary fluff",
    "Assess if company and project references are used appropriately",
]

DOCUMENT_JUDGE_CHOICES = """Select one of the following grades:
(A) The document matches expectations perfectly
(B) The document is good but missing minor details
(C) The document has minor issues but is generally acceptable
(D) The document has significant issues or missing information
(E) The document is completely incorrect or inappropriate
Respond with the letter only, e.g. (B)."""


def parse_choice(text: str, choices: Sequence[str]) -> str:
    """
    Find the grade letter in a judge response.

    Accepts "(B)", "B", "B) ..." or "Answer: (B)". Raises ValueError if
    no valid choice is found.
    """
    letters = "".join(choices)
    match = re.search(rf"\(([{letters}])\)", text) or re.match(rf"\s*([{letters}])\b", text)
    if not match:
        raise ValueError(f"No choice among {letters} found in judge response: {text[:200]!r}")
    return match.group(1)


class LLMClassifierScorer:
    """
    LLM-as-judge scorer with graded choices.

    The judge prompt is rendered from fragments: purpose, instructions, the
    choices as output format, and the expected/actual values as variables.
    """

    def __init__(
        self,
        name: str,
        purpose: str,
        instructions: Sequence[str],
        choices_text: str,
        llm: Optional[BaseChatModel] = None,
        choice_scores: Optional[Dict[str, float]] = None,
        renderer: Renderer = render_prompt,
    ):
        self.name = name
        self.purpose = purpose
        self.instructions = list(instructions)
        self.choices_text = choices_text
        self.llm = llm if llm is not None else create_llm("eval_judge")
        self.choice_scores = dict(choice_scores or CHOICE_SCORES)
        self.renderer = renderer

    def build_prompt(self, case: EvalCase, output: Any) -> str:
        if case.expected_document is not None:
            expected_text = "\n".join(f"{k}: {v}" for k, v in case.expected_document.to_dict().items())
        else:
            expected_text = "\n".join(f"- {a.title}" for a in case.expected_achievements) or "(none)"

        if isinstance(output, str):
            output_text = output
        else:
            output_text = "\n".join(f"- {t}" for t in _output_titles(output)) or "(none)"

        user_message = case.task_input.get("message")
        layout = [
            elements.purpose(self.purpose),
            elements.instructions(self.instructions),
            elements.output_format(self.choices_text),
            elements.variables(
                elements.user_input(text=user_message) if user_message else None,
                Leaf("expected", expected_text),
                Leaf("output", output_text),
            ),
        ]
        return self.renderer(layout)

    async def score(self, case: EvalCase, output: Any) -> ScoreResult:
        prompt = self.build_prompt(case, output)
        response = await self.llm.ainvoke([HumanMessage(content=prompt)])
        text = message_text(response)
        choice = parse_choice(text, list(self.choice_scores))
        return ScoreResult(
            score=self.choice_scores[choice],
            details={"choice": choice},
            feedback=text.strip()[:500],
        )


def extraction_judge(llm: Optional[BaseChatModel] = None) -> LLMClassifierScorer:
    """LLM judge comparing extracted achievements to the expected ones."""
    return LLMClassifierScorer(
        name="extraction_judge",
        purpose=EXTRACTION_JUDGE_PURPOSE,
        instructions=EXTRACTION_JUDGE_INSTRUCTIONS,
        choices_text=EXTRACTION_JUDGE_CHOICES,
        llm=llm,
    )


def document_judge(llm: Optional[BaseChatModel] = None) -> LLMClassifierScorer:
    """LLM judge grading a generated document against the user's preferences."""
    return LLMClassifierScorer(
        name="document_judge",
        purpose=DOCUMENT_JUDGE_PURPOSE,
        instructions=DOCUMENT_JUDGE_INSTRUCTIONS,
        choices_text=DOCUMENT_JUDGE_CHOICES,
        llm=llm,
    )
