"""Unit tests for the protocol models and error types."""
import pytest
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from shared.errors import BridgeError, SchemaValidationError, TransportError, TransportTimeoutError
from shared.protocol import Failure, Success, TextBlock, ToolDescriptor, ToolInvocationRequest, ToolInvocationResult


class _EchoArgs(BaseModel):
    message: str = Field(description="Message to echo back")


class TestToolDescriptor:
    def test_for_model_uses_json_schema(self):
        descriptor = ToolDescriptor.for_model("echo", "Echo back the input message", _EchoArgs)

        assert descriptor.name == "echo"
        assert descriptor.parameter_schema["type"] == "object"
        assert descriptor.parameter_schema["required"] == ["message"]
        assert "message" in descriptor.parameter_schema["properties"]

    def test_wire_alias(self):
        descriptor = ToolDescriptor.model_validate(
            {"name": "echo", "description": "d", "parameterSchema": {"type": "object"}}
        )
        assert descriptor.parameter_schema == {"type": "object"}
        assert "parameterSchema" in descriptor.model_dump(by_alias=True)

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ToolDescriptor(name="", description="nameless")

    def test_immutable(self):
        descriptor = ToolDescriptor(name="echo", description="d")
        with pytest.raises(ValidationError):
            descriptor.name = "other"


class TestInvocationResult:
    def test_success_text(self):
        result = Success.from_text("first", "second")

        assert not result.is_error
        assert result.content == (TextBlock(text="first"), TextBlock(text="second"))
        assert result.as_text() == "first\nsecond"

    def test_failure_renders_as_single_text_block(self):
        result = Failure(message="add-custom-slide: bad slideType")

        assert result.is_error
        assert result.content_blocks() == (TextBlock(text="add-custom-slide: bad slideType"),)

    def test_union_discriminates_on_status(self):
        adapter = TypeAdapter(ToolInvocationResult)

        assert isinstance(adapter.validate_python({"status": "failure", "message": "x"}), Failure)
        parsed = adapter.validate_python({"status": "success", "content": [{"type": "text", "text": "ok"}]})
        assert isinstance(parsed, Success)
        assert parsed.as_text() == "ok"

    def test_request_accepts_wire_name(self):
        request = ToolInvocationRequest.model_validate({"toolName": "echo", "arguments": {"message": "hi"}})
        assert request.tool_name == "echo"
        assert ToolInvocationRequest(tool_name="echo").arguments == {}


class TestErrors:
    def test_schema_validation_error_names_fields(self):
        error = SchemaValidationError("add-custom-slide", [("slideType", "Input should be 'Paragraph' or 'Bullet'")])

        assert str(error) == "add-custom-slide: Invalid arguments. slideType: Input should be 'Paragraph' or 'Bullet'"
        assert error.field_errors[0][0] == "slideType"

    def test_timeout_is_transport_error(self):
        error = TransportTimeoutError("tools/list timed out", server_id="slides")

        assert isinstance(error, TransportError)
        assert isinstance(error, BridgeError)
        assert error.server_id == "slides"
        assert error.user_message == "tools/list timed out"
