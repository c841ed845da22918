"""
Schema definitions for toolhost.

This module defines the Pydantic models exchanged over the wire:
- ToolDescriptor/ResourceDescriptor: What a host advertises
- TextContent/ResourceContent: The two kinds of content part
- ToolResult: The envelope returned by every tool call
- ResourceReadResult: The result of reading a resource
- RpcRequest and the params models: Inbound JSON-RPC messages

Design Decisions:
    - Python attribute names are snake_case; wire names are the camelCase
      aliases (inputSchema, mimeType, isError)
    - Content parts are a closed union discriminated on "type"
    - Models that describe registered things are frozen
"""

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSON_MIME = "application/json"
TEXT_MIME = "text/plain"


def to_json_text(payload: Any) -> str:
    """Serialize a payload the way every tool renders structured output."""
    return json.dumps(payload, indent=2, default=str)


# =============================================================================
# Descriptors
# =============================================================================


class ToolDescriptor(BaseModel):
    """
    Public metadata describing a tool.

    Attributes:
        name: Unique, stable identifier used to call the tool
        description: Human-readable description
        input_schema: The input contract (a JSON-schema-like tree)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )


class ResourceDescriptor(BaseModel):
    """
    Public metadata describing a readable resource.

    The uri is a lookup key, not a live network address.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uri: str = Field(..., min_length=1)
    name: str
    description: str = ""
    mime_type: str = Field(default=JSON_MIME, alias="mimeType")


# =============================================================================
# Content
# =============================================================================


class EmbeddedResource(BaseModel):
    """A uri-tagged blob of text, used inside results and resource reads."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uri: str
    mime_type: str = Field(default=TEXT_MIME, alias="mimeType")
    text: str


class TextContent(BaseModel):
    """A plain text content part."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ResourceContent(BaseModel):
    """A structured payload content part."""

    model_config = ConfigDict(frozen=True)

    type: Literal["resource"] = "resource"
    resource: EmbeddedResource


ContentPart = Annotated[TextContent | ResourceContent, Field(discriminator="type")]


class ToolResult(BaseModel):
    """
    The envelope returned by every tool call.

    is_error marks a handled failure: the tool ran and determined that it
    failed. It is still a successfully delivered response and never stands
    for a protocol fault.

    Attributes:
        content: Ordered content parts, summary text first
        is_error: Whether the tool reports a failure
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: list[ContentPart] = Field(..., min_length=1)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def ok(
        cls,
        summary: str,
        payload: Any = None,
        *,
        uri: str = "result://output",
        mime_type: str | None = None,
    ) -> "ToolResult":
        """
        Create a successful result.

        A string payload is attached as text/plain, anything else is
        rendered as JSON.
        """
        return cls(content=_parts(summary, payload, uri, mime_type))

    @classmethod
    def fail(
        cls,
        message: str,
        detail: Any = None,
        *,
        uri: str = "result://error",
        mime_type: str | None = None,
    ) -> "ToolResult":
        """Create a failed result, optionally carrying diagnostic output."""
        return cls(content=_parts(message, detail, uri, mime_type), is_error=True)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ToolResult":
        """Create the single-part failure envelope for a raised exception."""
        # toolhost errors carry a plain message next to their coded str()
        message = getattr(exc, "message", "") or str(exc) or type(exc).__name__
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def summary(self) -> str:
        """Text of the first text part."""
        for part in self.content:
            if isinstance(part, TextContent):
                return part.text
        return ""

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True)


def _parts(text: str, payload: Any, uri: str, mime_type: str | None) -> list[ContentPart]:
    parts: list[ContentPart] = [TextContent(text=text)]
    if payload is None:
        return parts
    if isinstance(payload, str):
        body, mime = payload, mime_type or TEXT_MIME
    else:
        body, mime = to_json_text(payload), mime_type or JSON_MIME
    parts.append(ResourceContent(resource=EmbeddedResource(uri=uri, mime_type=mime, text=body)))
    return parts


class ResourceReadResult(BaseModel):
    """The result of reading a resource."""

    model_config = ConfigDict(frozen=True)

    contents: list[EmbeddedResource] = Field(default_factory=list)

    @classmethod
    def json_document(cls, uri: str, payload: Any) -> "ResourceReadResult":
        """A single JSON document."""
        return cls(contents=[EmbeddedResource(uri=uri, mime_type=JSON_MIME, text=to_json_text(payload))])

    @classmethod
    def text_document(cls, uri: str, text: str, mime_type: str = TEXT_MIME) -> "ResourceReadResult":
        """A single text document."""
        return cls(contents=[EmbeddedResource(uri=uri, mime_type=mime_type, text=text)])

    @classmethod
    def error(cls, uri: str, message: str) -> "ResourceReadResult":
        """A failed read, reported as content rather than as an error."""
        return cls.text_document(uri, f"Error: {message}")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True)


# =============================================================================
# JSON-RPC Messages
# =============================================================================


class RpcRequest(BaseModel):
    """
    An inbound JSON-RPC 2.0 message.

    A message without an "id" member is a notification and gets no response.
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"] = "2.0"
    id: int | str | None = None
    method: str = Field(..., min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def none_params_are_empty(cls, v: Any) -> Any:
        """Treat an explicit null params as no params."""
        return {} if v is None else v

    @property
    def is_notification(self) -> bool:
        """Whether the sender expects no response."""
        return "id" not in self.model_fields_set


class CallToolParams(BaseModel):
    """Params of a tools/call request."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def none_arguments_are_empty(cls, v: Any) -> Any:
        """Treat an explicit null arguments as no arguments."""
        return {} if v is None else v


class ReadResourceParams(BaseModel):
    """Params of a resources/read request."""

    model_config = ConfigDict(extra="ignore")

    uri: str = Field(..., min_length=1)


def rpc_result(request_id: int | str | None, result: Any) -> dict[str, Any]:
    """Build a JSON-RPC success response."""
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def rpc_error(request_id: int | str | None, error: dict[str, Any]) -> dict[str, Any]:
    """Build a JSON-RPC error response."""
    return {"jsonrpc": "2.0", "id": request_id, "error": error}
