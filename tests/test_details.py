"""Tests for step detail classification and rendering."""
from __future__ import annotations

from runlens.run.details import (
    CodeInterpreterCall,
    FunctionCall,
    ImageOutput,
    MessageCreationDetail,
    TextOutput,
    ToolCallsDetail,
    UnknownDetail,
    UnrecognizedToolCall,
    classify_details,
    classify_tool_call,
    pretty_arguments,
    render_detail_lines,
)


def _tool_calls(*calls):
    return {"type": "tool_calls", "tool_calls": list(calls)}


class TestClassifyDetails:
    """Tests for classify_details."""

    def test_function_call(self) -> None:
        detail = classify_details(_tool_calls({
            "id": "call_1",
            "type": "function",
            "function": {"name": "get_weather", "arguments": '{"city":"Oslo"}'},
        }))

        assert isinstance(detail, ToolCallsDetail)
        call = detail.tool_calls[0]
        assert isinstance(call, FunctionCall)
        assert call.id == "call_1"
        assert call.name == "get_weather"
        assert call.arguments == '{"city":"Oslo"}'
        assert call.pretty_arguments == '{\n  "city": "Oslo"\n}'

    def test_function_defaults(self) -> None:
        detail = classify_details(_tool_calls({"type": "function", "function": {}}))

        call = detail.tool_calls[0]
        assert call.name == "Unnamed"
        assert call.arguments == "{}"

    def test_malformed_arguments_kept_raw(self) -> None:
        call = classify_tool_call({
            "type": "function",
            "function": {"name": "f", "arguments": "{not json"},
        })

        assert call.pretty_arguments == "{not json"

    def test_code_interpreter_outputs(self) -> None:
        detail = classify_details(_tool_calls({
            "id": "call_2",
            "type": "code_interpreter",
            "code_interpreter": {
                "input": "print(2 + 2)",
                "outputs": [
                    {"type": "logs", "logs": "4"},
                    {"type": "text", "text": "done"},
                    {"type": "image", "image": {"data": "iVBORw0KGgo="}},
                    {"type": "image", "image": {}},
                    "junk",
                ],
            },
        }))

        call = detail.tool_calls[0]
        assert isinstance(call, CodeInterpreterCall)
        assert call.input == "print(2 + 2)"
        assert call.outputs == (
            TextOutput(text="4"),
            TextOutput(text="done"),
            ImageOutput(data="iVBORw0KGgo="),
        )
        assert call.outputs[2].data_uri == "data:image/png;base64,iVBORw0KGgo="

    def test_code_interpreter_without_input(self) -> None:
        call = classify_tool_call({"type": "code_interpreter", "code_interpreter": {}})

        assert call.input == "No input provided"
        assert call.outputs == ()

    def test_unrecognized_tool_kind(self) -> None:
        detail = classify_details(_tool_calls(
            {"id": "call_3", "type": "file_search", "file_search": {}},
            {"id": "call_4"},
        ))

        assert detail.tool_calls == (
            UnrecognizedToolCall(id="call_3", kind="file_search"),
            UnrecognizedToolCall(id="call_4", kind="Unknown Type"),
        )

    def test_non_object_tool_calls_skipped(self) -> None:
        detail = classify_details(_tool_calls("oops", None))

        assert detail == ToolCallsDetail(tool_calls=())

    def test_message_creation(self) -> None:
        detail = classify_details({
            "type": "message_creation",
            "message_creation": {"message_id": "msg_1"},
        })

        assert detail == MessageCreationDetail(message_id="msg_1")

    def test_message_creation_without_id(self) -> None:
        detail = classify_details({"type": "message_creation", "message_creation": {}})

        assert detail.message_id == "Unknown Message ID"

    def test_unknown_shapes(self) -> None:
        assert classify_details(None) == UnknownDetail(raw=None)
        assert classify_details({"type": "other"}) == UnknownDetail(raw={"type": "other"})
        assert isinstance(classify_details({"type": "tool_calls"}), UnknownDetail)


class TestPrettyArguments:
    def test_empty_is_empty_object(self) -> None:
        assert pretty_arguments(None) == "{}"
        assert pretty_arguments("") == "{}"


class TestRenderDetailLines:
    """Tests for render_detail_lines."""

    def test_tool_calls(self) -> None:
        detail = classify_details(_tool_calls(
            {"type": "function", "function": {"name": "lookup", "arguments": '{"q": 1}'}},
            {"type": "code_interpreter", "code_interpreter": {
                "input": "x = 1\nx",
                "outputs": [{"type": "logs", "logs": "1"}],
            }},
            {"type": "file_search"},
        ))

        assert render_detail_lines(detail) == [
            "Tool Calls: 3",
            "Tool Call 1: function",
            "  Function: lookup",
            "  Arguments:",
            "    {",
            '      "q": 1',
            "    }",
            "Tool Call 2: code_interpreter",
            "  Input:",
            "    x = 1",
            "    x",
            "  Outputs:",
            "    1",
            "Tool Call 3: file_search",
        ]

    def test_image_output_summarized(self) -> None:
        detail = ToolCallsDetail(tool_calls=(
            CodeInterpreterCall(id=None, input="plot()", outputs=(ImageOutput(data="abcd"),)),
        ))

        assert "    [image, 4 base64 chars]" in render_detail_lines(detail)

    def test_message_creation(self) -> None:
        assert render_detail_lines(MessageCreationDetail(message_id="msg_1")) == ["Message ID: msg_1"]

    def test_no_details(self) -> None:
        assert render_detail_lines(UnknownDetail(raw=None)) == ["No step details available"]

    def test_unknown_payload_dumped_as_json(self) -> None:
        lines = render_detail_lines(UnknownDetail(raw={"type": "other"}))

        assert lines == ["{", '  "type": "other"', "}"]
