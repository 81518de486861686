"""Completion export helpers (CSV and JSON).

CSV layout: header ``index,token,logprob,prob,alts``; ``token`` and ``alts``
are always double-quoted with embedded quotes doubled; ``alts`` holds the
alternatives as a JSON list. Numbers are written the way a browser would
print them (``0`` rather than ``0.0``); an unknown logprob is an empty cell
(``null`` inside ``alts``).
"""
from __future__ import annotations

import json
import math
from typing import List, Optional, Union

from ..base.models import Alt, CompletionLP

CSV_HEADER = "index,token,logprob,prob,alts"

Number = Union[int, float]


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _js_number(value: float) -> Optional[Number]:
    if not math.isfinite(value):
        return None
    return int(value) if float(value).is_integer() else float(value)


def _cell(value: float) -> str:
    number = _js_number(value)
    return "" if number is None else repr(number)


def _alts_json(alts: List[Alt]) -> str:
    payload = [{"token": a.token, "logprob": _js_number(a.logprob), "prob": _js_number(a.prob)} for a in alts]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def completion_to_csv(completion: CompletionLP) -> str:
    """Render the completion's tokens as CSV (no trailing newline)."""
    rows: List[str] = [CSV_HEADER]
    for t in completion.tokens:
        rows.append(
            ",".join([str(t.index), _quote(t.token), _cell(t.logprob), _cell(t.prob), _quote(_alts_json(t.top_logprobs))])
        )
    return "\n".join(rows)


def completion_to_json(completion: CompletionLP, *, indent: int = 2) -> str:
    """Pretty-printed wire JSON of the completion."""
    return json.dumps(completion.to_dict(), ensure_ascii=False, indent=indent, allow_nan=False)


__all__ = ["CSV_HEADER", "completion_to_csv", "completion_to_json"]
