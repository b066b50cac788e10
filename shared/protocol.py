"""Protocol models exchanged between the bridge client and tool servers."""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field


class TextBlock(BaseModel):
    """A single ``{type: "text", text}`` content block."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolDescriptor(BaseModel):
    """Name, description and parameter schema of a registered tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str
    parameter_schema: Dict[str, Any] = Field(default_factory=dict, alias="parameterSchema")

    @classmethod
    def for_model(cls, name: str, description: str, model: Type[BaseModel]) -> "ToolDescriptor":
        """Build a descriptor whose schema is derived from a pydantic argument model."""
        return cls(name=name, description=description, parameter_schema=model.model_json_schema())


class ToolInvocationRequest(BaseModel):
    """A request to run ``tool_name`` with ``arguments``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool_name: str = Field(alias="toolName")
    arguments: Dict[str, Any] = Field(default_factory=dict)


class Success(BaseModel):
    """Tool ran and produced content."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    content: Tuple[TextBlock, ...] = ()

    @classmethod
    def from_text(cls, *texts: str) -> "Success":
        return cls(content=tuple(TextBlock(text=text) for text in texts))

    @property
    def is_error(self) -> bool:
        return False

    def content_blocks(self) -> Tuple[TextBlock, ...]:
        return self.content

    def as_text(self) -> str:
        return "\n".join(block.text for block in self.content)


class Failure(BaseModel):
    """Tool could not run; ``message`` is meant to be read by the model."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    message: str

    @property
    def is_error(self) -> bool:
        return True

    def content_blocks(self) -> Tuple[TextBlock, ...]:
        return (TextBlock(text=self.message),)

    def as_text(self) -> str:
        return self.message


ToolInvocationResult = Annotated[Union[Success, Failure], Field(discriminator="status")]


__all__ = [
    "TextBlock",
    "ToolDescriptor",
    "ToolInvocationRequest",
    "Success",
    "Failure",
    "ToolInvocationResult",
]
