"""
Shared prompt components for the extraction prompts.

Both the chat and the commit extraction prompts apply the same rules for
titles, summaries, dates, company/project attribution and impact.
"""

import json
from typing import Any, Dict, List, Sequence

from brag_pipeline.common.types import EVENT_DURATIONS


TITLE_RULES = """Each achievement should have a clear, action-oriented title (REQUIRED) that:
- Starts with an action verb (e.g., Led, Launched, Developed)
- Includes specific metrics when possible (e.g., "40% reduction", "2x improvement")
- Mentions specific systems or teams affected
- Is between 10 and 256 characters
Example good titles:
- "Led Migration of 200+ Services to Cloud Platform"
- "Reduced API Response Time by 40% through Caching"
- "Grew Frontend Team from 5 to 12 Engineers\""""

IMPACT_RULES = """Return an impact rating from 1 to 10 based on these criteria:
- 1-3 (Low): Routine tasks, individual/small team benefit, short-term impact
- 4-7 (Medium): Notable improvements, team/department benefit, medium-term impact
- 8-10 (High): Major initiatives, org-wide benefit, long-term strategic impact
If there is not enough information to judge the impact, omit the field."""

FOCUS_AREAS = """Pay special attention to:
1. Recent updates or progress reports
2. Completed milestones or phases
3. Team growth or leadership responsibilities
4. Quantitative metrics or impact
5. Technical implementations or solutions"""

EXTRACTION_RULES: List[str] = [
    FOCUS_AREAS,
    TITLE_RULES,
    "Create a concise summary highlighting key metrics and impact. Do not add anything beyond what the user told you.",
    "Create a detailed description including context and significance. Do not add anything beyond what the user told you. Do not speculate.",
    f"If possible, include the event duration ({'/'.join(EVENT_DURATIONS)}).",
    "If the user is clearly indicating a specific company, provide the company ID (or null if none).",
    "If the user clearly indicated a specific project but did not mention the company, provide the company ID from the project if it has one.",
    "If the user is clearly indicating a specific project, provide the project ID (or null if none).",
    "Create an event_start date (YYYY-MM-DD) if possible. If the user tells you they did something on a specific date, include it.",
    "Create an event_end date (YYYY-MM-DD) if possible. If the user does not explicitly mention an end date, do not return one.",
    IMPACT_RULES,
    "Each achievement should be complete and self-contained.",
    "If there are no achievements in the input, return an empty achievements list.",
]


# Reference extractions shown to the model as <example> blocks
EXAMPLE_ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "title": "Launched AI Analysis Tool with 95% Accuracy at Quantum Nexus",
        "summary": (
            "Developed an AI tool for real-time data analysis with 95% accuracy for Quantum Nexus, "
            "playing a pivotal role in Project Orion's success."
        ),
        "details": (
            "As part of Project Orion at Quantum Nexus, I was responsible for developing an AI tool "
            "focused on real-time data analysis. By implementing advanced algorithms and enhancing "
            "the training data sets, the tool reached a 95% accuracy rate."
        ),
        "event_start": "2024-06-15",
        "event_end": "2024-09-15",
        "event_duration": "quarter",
        "company_id": "e3856e75-37cf-4640-afd9-e73a53fa967d",
        "project_id": "3923129e-719b-4f99-8487-9830cf64ad5d",
        "impact": 6,
    },
    {
        "title": "Implemented Scalable Quantum Infrastructure at Quantum Nexus",
        "summary": (
            "Built a scalable quantum computing infrastructure for Quantum Nexus, boosting "
            "computational efficiency by 200% over 4 months."
        ),
        "details": (
            "During my work on Quantum Leap, I led the design and development of a new scalable "
            "infrastructure for quantum computing simulations. This involved optimizing resource "
            "allocation and reducing network latency."
        ),
        "event_start": "2024-08-01",
        "event_end": "2024-11-30",
        "event_duration": "quarter",
        "company_id": "e3856e75-37cf-4640-afd9-e73a53fa967d",
        "project_id": "84451830-87ea-4453-b341-40600c1febe0",
        "impact": 6,
    },
    {
        "title": "Developed Innovation Platform with 99% Uptime at InnovateHub",
        "summary": (
            "Created an innovation management platform with 99% uptime for InnovateHub, "
            "significantly enhancing operational functionality over 5 months."
        ),
        "details": (
            "At InnovateHub, I contributed to the Innovation Pathway project by engineering a new "
            "platform for innovation management, focusing on architecture stability and high availability."
        ),
        "event_start": "2023-12-01",
        "event_end": "2024-05-10",
        "event_duration": "half year",
        "company_id": "b1811fbb-5768-4cb8-9faf-66d0fab08f36",
        "project_id": "55526e8d-3b6b-4a9b-8ba6-3f3a3681d894",
        "impact": 6,
    },
]


def format_examples(items: Sequence[Dict[str, Any]]) -> List[str]:
    """Pretty-print example achievements as JSON strings for <example> tags."""
    return [json.dumps(item, indent=4) for item in items]
