"""Projection of intake results for client-facing (external) use.

The external record states the determination and nothing about how it was
reached: run counts, notes, timestamps and anchor phrases stay internal.
"""

import re
from typing import Any, Dict, List, Mapping

from .errors import BannedVocabulary
from .run_unit import RunUnit


PROHIBITED_FIELDS = frozenset({
    "run_count",
    "confirmation_count",
    "cap_reached",
    "cap_status",
    "observed_count",
    "not_observed_count",
    "sufficiency_reached",
    "run_unit_selection",
    "run_sequence",
    "interleave_order",
    "desktop_execution_detail",
    "mobile_execution_detail",
    "note",
    "notes",
    "internal_note",
    "started_at",
    "finished_at",
    "qualifying_confirmations",
    "total_runs_executed",
    "mobile_anchor_phrase",
    "mobile_in_scope",
    "run_cap",
    "runs",
})

# Legal-conclusion vocabulary. A technical record observes; it does not rule.
BANNED_WORDS = (
    "pass",
    "passed",
    "fail",
    "failed",
    "compliant",
    "non-compliant",
    "noncompliant",
    "compliance",
    "violation",
    "violates",
    "lawful",
    "unlawful",
    "illegal",
    "liable",
    "liability",
    "negligent",
    "discriminatory",
)

_BANNED_RES = tuple(
    (word, re.compile(r"(?<![\w-])" + re.escape(word) + r"(?![\w-])", re.IGNORECASE))
    for word in BANNED_WORDS
)


def filter_for_external(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop every internal field (case-insensitive key match)."""
    return {k: v for k, v in record.items() if k.lower() not in PROHIBITED_FIELDS}


def filter_run_units_for_external(run_units: List[RunUnit]) -> List[Dict[str, Any]]:
    return [
        {
            "id": unit.id,
            "unit_key": unit.unit_key,
            "source_anchor": unit.source_anchor,
            "asserted_condition": unit.asserted_condition,
            "outcome": unit.outcome.value if unit.outcome is not None else None,
            "context": unit.context.value if unit.context is not None else None,
        }
        for unit in run_units
    ]


def scan_for_banned_vocabulary(text: Any) -> List[str]:
    """Return the banned words present in ``text`` as whole words, in list order."""
    source = "" if text is None else str(text)
    return [word for word, pattern in _BANNED_RES if pattern.search(source)]


def assert_no_banned_vocabulary(text: Any) -> None:
    found = scan_for_banned_vocabulary(text)
    if found:
        raise BannedVocabulary(found)
