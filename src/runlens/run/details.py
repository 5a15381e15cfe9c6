"""Classification of step detail payloads.

``step_details`` is opaque JSON whose shape depends on the step type. It is
classified once into a closed set of detail kinds so that renderers can
handle every case explicitly instead of probing the payload.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class FunctionCall:
    id: Optional[str]
    name: str
    arguments: str
    # Arguments re-indented when they parse as JSON, raw otherwise
    pretty_arguments: str


@dataclass(frozen=True)
class TextOutput:
    text: str


@dataclass(frozen=True)
class ImageOutput:
    data: str  # base64 PNG

    @property
    def data_uri(self) -> str:
        return f"data:image/png;base64,{self.data}"


CodeOutput = Union[TextOutput, ImageOutput]


@dataclass(frozen=True)
class CodeInterpreterCall:
    id: Optional[str]
    input: str
    outputs: tuple[CodeOutput, ...] = ()


@dataclass(frozen=True)
class UnrecognizedToolCall:
    id: Optional[str]
    kind: str


ToolCall = Union[FunctionCall, CodeInterpreterCall, UnrecognizedToolCall]


@dataclass(frozen=True)
class ToolCallsDetail:
    tool_calls: tuple[ToolCall, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MessageCreationDetail:
    message_id: str


@dataclass(frozen=True)
class UnknownDetail:
    raw: Any


StepDetail = Union[ToolCallsDetail, MessageCreationDetail, UnknownDetail]


def pretty_arguments(arguments: Optional[str]) -> str:
    """Pretty-print a JSON argument string, falling back to the raw text."""
    text = arguments or "{}"
    try:
        return json.dumps(json.loads(text), indent=2)
    except (ValueError, TypeError):
        return text


def _classify_output(raw: Any) -> Optional[CodeOutput]:
    if not isinstance(raw, dict):
        return None
    kind = raw.get("type")
    if kind in ("text", "logs"):
        text = raw.get("text") if kind == "text" else raw.get("logs")
        return TextOutput(text=text if isinstance(text, str) else "")
    if kind == "image":
        image = raw.get("image")
        if isinstance(image, dict) and image.get("data"):
            return ImageOutput(data=image["data"])
    return None


def classify_tool_call(raw: Any) -> Optional[ToolCall]:
    """Classify one entry of a tool_calls list; None for non-objects."""
    if not isinstance(raw, dict):
        return None

    call_id = raw.get("id")
    kind = raw.get("type")

    if kind == "function" and isinstance(raw.get("function"), dict):
        fn = raw["function"]
        arguments = fn.get("arguments")
        if not isinstance(arguments, str):
            arguments = "{}" if arguments is None else json.dumps(arguments)
        return FunctionCall(
            id=call_id,
            name=fn.get("name") or "Unnamed",
            arguments=arguments,
            pretty_arguments=pretty_arguments(arguments),
        )

    if kind == "code_interpreter" and isinstance(raw.get("code_interpreter"), dict):
        ci = raw["code_interpreter"]
        outputs_raw = ci.get("outputs")
        outputs: list[CodeOutput] = []
        if isinstance(outputs_raw, list):
            for item in outputs_raw:
                output = _classify_output(item)
                if output is not None:
                    outputs.append(output)
        return CodeInterpreterCall(
            id=call_id,
            input=ci.get("input") or "No input provided",
            outputs=tuple(outputs),
        )

    return UnrecognizedToolCall(id=call_id, kind=kind or "Unknown Type")


def classify_details(payload: Any) -> StepDetail:
    """Classify a step's ``step_details`` payload."""
    if not isinstance(payload, dict):
        return UnknownDetail(raw=payload)

    kind = payload.get("type")

    if kind == "tool_calls" and isinstance(payload.get("tool_calls"), list):
        calls = [classify_tool_call(c) for c in payload["tool_calls"]]
        return ToolCallsDetail(tool_calls=tuple(c for c in calls if c is not None))

    if kind == "message_creation" and isinstance(payload.get("message_creation"), dict):
        message_id = payload["message_creation"].get("message_id")
        return MessageCreationDetail(message_id=message_id or "Unknown Message ID")

    return UnknownDetail(raw=payload)


def render_detail_lines(detail: StepDetail) -> list[str]:
    """Render a classified detail as plain text lines."""
    if isinstance(detail, ToolCallsDetail):
        lines = [f"Tool Calls: {len(detail.tool_calls)}"]
        for n, call in enumerate(detail.tool_calls, start=1):
            if isinstance(call, FunctionCall):
                lines.append(f"Tool Call {n}: function")
                lines.append(f"  Function: {call.name}")
                lines.append("  Arguments:")
                lines.extend(f"    {line}" for line in call.pretty_arguments.splitlines())
            elif isinstance(call, CodeInterpreterCall):
                lines.append(f"Tool Call {n}: code_interpreter")
                lines.append("  Input:")
                lines.extend(f"    {line}" for line in call.input.splitlines())
                if call.outputs:
                    lines.append("  Outputs:")
                for output in call.outputs:
                    if isinstance(output, TextOutput):
                        lines.extend(f"    {line}" for line in output.text.splitlines())
                    else:
                        lines.append(f"    [image, {len(output.data)} base64 chars]")
            else:
                lines.append(f"Tool Call {n}: {call.kind}")
        return lines

    if isinstance(detail, MessageCreationDetail):
        return [f"Message ID: {detail.message_id}"]

    if detail.raw is None:
        return ["No step details available"]
    return json.dumps(detail.raw, indent=2, default=str).splitlines()
