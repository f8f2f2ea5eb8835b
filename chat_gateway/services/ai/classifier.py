"""Keyword-based detection of the auxiliary tool a user turn needs."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ...schemas.chat import ToolSelection

logger = logging.getLogger(__name__)

SEARCH_RESULT_COUNT = 3

_EXPRESSION_RUN = re.compile(r"[\d()+\-*/=\s.]+")


@dataclass(frozen=True)
class ToolTrigger:
    """One row of the keyword table: tool name, triggers, argument builder."""

    tool: str
    keywords: tuple[str, ...]
    extract: Callable[[str, tuple[str, ...]], Optional[dict[str, Any]]]

    def matches(self, lowered: str) -> bool:
        return any(keyword in lowered for keyword in self.keywords)


def _search_arguments(text: str, keywords: tuple[str, ...]) -> dict[str, Any]:
    pattern = "|".join(re.escape(keyword) for keyword in keywords)
    query = re.sub(pattern, "", text, flags=re.IGNORECASE).strip()
    return {"query": query, "num_results": SEARCH_RESULT_COUNT}


def _no_arguments(text: str, keywords: tuple[str, ...]) -> dict[str, Any]:
    return {}


def extract_expression(text: str) -> Optional[str]:
    """Return the longest arithmetic-looking run of ``text`` holding a digit."""
    best = ""
    for match in _EXPRESSION_RUN.finditer(text):
        candidate = match.group(0).strip().rstrip("=").strip()
        if any(char.isdigit() for char in candidate) and len(candidate) > len(best):
            best = candidate
    return best or None


def _calculate_arguments(text: str, keywords: tuple[str, ...]) -> Optional[dict[str, Any]]:
    expression = extract_expression(text)
    if expression is None:
        return None
    return {"expression": expression}


# Order matters: the first row with a matching keyword wins.
TOOL_TRIGGERS: tuple[ToolTrigger, ...] = (
    ToolTrigger(
        tool="search",
        keywords=("search", "find", "lookup", "look up", "latest", "current news"),
        extract=_search_arguments,
    ),
    ToolTrigger(
        tool="current_time",
        keywords=("time", "date", "when", "now"),
        extract=_no_arguments,
    ),
    ToolTrigger(
        tool="calculate",
        keywords=("calculate", "math", "compute", "+", "-", "*", "/", "="),
        extract=_calculate_arguments,
    ),
)


class ToolClassifier:
    """Maps the latest user text to at most one tool call."""

    def __init__(self, triggers: tuple[ToolTrigger, ...] = TOOL_TRIGGERS) -> None:
        self._triggers = triggers

    def classify(self, text: str) -> Optional[ToolSelection]:
        lowered = text.lower()
        for trigger in self._triggers:
            if not trigger.matches(lowered):
                continue
            arguments = trigger.extract(text, trigger.keywords)
            if arguments is None:
                logger.debug("Keyword for %s matched but no arguments could be derived", trigger.tool)
                return None
            return ToolSelection(tool=trigger.tool, arguments=arguments)
        return None
