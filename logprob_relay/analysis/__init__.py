"""Analysis helpers over finalized completions (export, navigation, stats)."""

from .export import CSV_HEADER, completion_to_csv, completion_to_json
from .navigation import (
    branch_prefix,
    find_next_low_confidence_index,
    is_punctuation_token,
    is_whitespace_token,
)
from .summary import CompletionSummary, summarize

__all__ = [
    "CSV_HEADER",
    "CompletionSummary",
    "branch_prefix",
    "completion_to_csv",
    "completion_to_json",
    "find_next_low_confidence_index",
    "is_punctuation_token",
    "is_whitespace_token",
    "summarize",
]
