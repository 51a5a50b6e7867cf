"""Parsing of the model's tool-selection output.

Fallback ordering is fixed:

1. unparseable JSON or JSON null               -> None (general conversation)
2. ``{"type": "text", "text": str}``            -> DirectAnswer(text)
3. ``{"type": "tool_use", "name": str, ...}``   -> ToolInvocation if the tool
   is in the snapshot, else None (general conversation)
4. any other JSON value                         -> DirectAnswer(raw output)
"""

from __future__ import annotations

import json
import time
from typing import Annotated, Any, Dict, Iterable, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from mcp_bridge.domain.exceptions import DecisionParseError
from mcp_bridge.domain.turn import DirectAnswer, ToolDecision, ToolInvocation
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.tools.definitions import ToolDescriptor


class ToolUsePayload(BaseModel):
    type: Literal["tool_use"]
    name: str = Field(min_length=1)
    id: Optional[Union[str, int]] = None
    input: Optional[Dict[str, Any]] = None


class TextPayload(BaseModel):
    type: Literal["text"]
    text: str


DecisionPayload = Annotated[Union[ToolUsePayload, TextPayload], Field(discriminator="type")]
_decision_adapter: TypeAdapter = TypeAdapter(DecisionPayload)


def strip_code_fence(raw: str) -> str:
    """Return the contents of the first ```json (or bare ```) block, else the trimmed text."""

    text = raw.strip()
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in text:
        return text.split("```", 2)[1].strip()
    return text


def parse_decision_json(raw: str) -> Any:
    try:
        return json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        raise DecisionParseError(code="DECISION_PARSE_ERROR", message=str(exc))


def resolve_decision(raw: str, tools: Iterable[ToolDescriptor]) -> Optional[ToolDecision]:
    """Map raw model output to a decision; None means general conversation."""

    try:
        payload = parse_decision_json(raw)
    except DecisionParseError as exc:
        logger.info("Tool decision parsing failed", extra={"extra": {"error": exc.message}})
        return None

    if payload is None:
        logger.info("Tool decision was JSON null, using general conversation")
        return None

    try:
        decision = _decision_adapter.validate_python(payload)
    except ValidationError:
        logger.info("Decision not in expected format, using raw response")
        return DirectAnswer(text=raw)

    if isinstance(decision, TextPayload):
        return DirectAnswer(text=decision.text)

    if decision.name not in {t.name for t in tools}:
        logger.error("Selected tool not found", extra={"extra": {"tool_name": decision.name}})
        return None

    invocation_id = str(decision.id) if decision.id is not None else f"tool-{int(time.time() * 1000)}"
    return ToolInvocation(tool_name=decision.name, invocation_id=invocation_id, arguments=decision.input or {})
