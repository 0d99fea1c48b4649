"""
Integration Test Fixtures

Fixed documents for deterministic pipeline tests.
All fixtures are explicit - no random generation.
"""

from typing import Dict, List


# =============================================================================
# CANONICAL FEEDBACK LOOP
# =============================================================================

BALANCING_LOOP_TEXT = (
    "Underperformance leads to resource allocation. "
    "Resource allocation increases performance. "
    "Performance reduces underperformance."
)

TRIGGER_TEXT = "Underperformance triggers scrapping."

NO_CUE_TEXT = "Better design improves building performance."

REINFORCING_LOOP_TEXT = (
    "Rework leads to scrapping.\n"
    "Scrapping increases rework."
)


def create_document(doc_id: str, text: str, **extra) -> Dict:
    doc = {'id': doc_id, 'text': text}
    doc.update(extra)
    return doc


def create_balancing_corpus() -> List[Dict]:
    return [create_document('interview_01', BALANCING_LOOP_TEXT, title='Interview 1')]


def create_split_corpus() -> List[Dict]:
    """The balancing loop spread across three documents."""
    return [
        create_document('doc_a', "Underperformance leads to resource allocation."),
        create_document('doc_b', "Resource allocation increases performance."),
        create_document('doc_c', "Performance reduces underperformance."),
    ]


def create_mixed_corpus() -> List[Dict]:
    return [
        create_document('interview_01', BALANCING_LOOP_TEXT),
        create_document('interview_02', TRIGGER_TEXT + "\r\n" + NO_CUE_TEXT),
        create_document('interview_03', REINFORCING_LOOP_TEXT),
        create_document('empty', ""),
    ]
