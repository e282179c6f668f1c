# travelog/api/extraction.py
"""Locate and parse the JSON payload inside a model completion.

Framing protocol: when a completion contains a ``TRIP_DATA_START`` …
``TRIP_DATA_END`` block, the enclosed text is the payload and nothing
outside it is considered. Otherwise the whole completion is the payload.
The chosen payload is parsed as-is first, then through a short, fixed list
of repairs. No schema checks happen here; callers decode the result with
the total decoders in :mod:`travelog.api.models`.
"""

import json
import logging
import re
from typing import Any, Callable, List, Optional

from travelog.api.errors import MalformedModelOutput
from travelog.api.prompts import TRIP_DATA_END, TRIP_DATA_START

logger = logging.getLogger(__name__)

_FRAMED_RE = re.compile(
    re.escape(TRIP_DATA_START) + r"\s*(.*?)\s*" + re.escape(TRIP_DATA_END),
    re.DOTALL,
)
_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def find_framed(text: str) -> Optional[str]:
    """Return the first sentinel-framed block, or None."""
    match = _FRAMED_RE.search(text or "")
    return match.group(1) if match else None


def strip_framed(text: str) -> str:
    """Remove every framed block from a conversational reply."""
    return _FRAMED_RE.sub("", text or "").strip()


# ---------------------------------------------------------------------------
# Repairs
# ---------------------------------------------------------------------------

def _strip_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    return match.group(1) if match else text


def _trim_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def _outermost_block(text: str) -> str:
    """Slice from an opening bracket to the last closing partner.

    Object and array slices are tried separately, earliest first, so a
    stray bracket in the prose before the payload does not hide it.
    """
    slices = []
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            slices.append((start, text[start:end + 1]))
    slices.sort()
    for _, block in slices:
        try:
            json.loads(block)
        except ValueError:
            continue
        return block
    return slices[0][1] if slices else text


_REPAIRS: List[Callable[[str], str]] = [
    _strip_fences,
    _trim_trailing_commas,
    _outermost_block,
]


def extract(completion: str) -> Any:
    """Parse the structured payload of ``completion``.

    Raises:
        MalformedModelOutput: when no attempt produces valid JSON.
    """
    text = completion or ""
    framed = find_framed(text)
    candidate = (framed if framed is not None else text).strip()

    try:
        return json.loads(candidate)
    except ValueError:
        pass

    repaired = candidate
    for repair in _REPAIRS:
        repaired = repair(repaired).strip()
        try:
            result = json.loads(repaired)
        except ValueError:
            continue
        logger.info(f"Parsed model output after {repair.__name__}")
        return result

    logger.error("Failed to parse model output: %s", candidate[:200])
    raise MalformedModelOutput(raw=text)


__all__ = ["extract", "find_framed", "strip_framed"]
