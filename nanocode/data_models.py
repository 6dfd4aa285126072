# nanocode/data_models.py
from typing import Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


# --- Conversation records ---

class ToolInvocation(BaseModel):
    id: str
    name: str
    arguments_json: str = ""
    model_config = ConfigDict(frozen=True)


class Message(BaseModel):
    role: Literal["system", "user", "assistant", "tool"]
    text: str = ""
    tool_calls: List[ToolInvocation] = Field(default_factory=list)
    tool_call_id: Optional[str] = None
    tool_name: Optional[str] = None
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_tool_reference(self):
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool messages must carry the tool_call_id they answer")
        if self.tool_calls and self.role != "assistant":
            raise ValueError("only assistant messages may carry tool calls")
        return self


# --- Stream events ---

class ContentDelta(BaseModel):
    text: str
    model_config = ConfigDict(frozen=True)


class ToolCallFragment(BaseModel):
    index: int
    id_if_new: Optional[str] = None
    name_if_new: Optional[str] = None
    arguments_chunk: str = ""
    model_config = ConfigDict(frozen=True)

    @property
    def starts_invocation(self) -> bool:
        return bool(self.id_if_new or self.name_if_new)


class StreamEnd(BaseModel):
    finish_reason: Optional[str] = None
    model_config = ConfigDict(frozen=True)


class StreamError(BaseModel):
    message: str
    model_config = ConfigDict(frozen=True)


StreamEvent = Union[ContentDelta, ToolCallFragment, StreamEnd, StreamError]


# --- Tool declarations ---

class PropertySchema(BaseModel):
    type: str
    description: str = ""
    model_config = ConfigDict(frozen=True)


class ParameterSchema(BaseModel):
    type: str = "object"
    properties: Dict[str, PropertySchema]
    required: List[str] = Field(default_factory=list)
    model_config = ConfigDict(frozen=True)


class ToolDeclaration(BaseModel):
    name: str
    description: str
    parameter_schema: ParameterSchema
    model_config = ConfigDict(frozen=True)


# --- Tool arguments ---

class ReadFileArgs(BaseModel):
    path: str
    offset: int = Field(0, ge=0)
    limit: Optional[int] = Field(None, ge=1)
    model_config = ConfigDict(extra='ignore', frozen=True)


class WriteFileArgs(BaseModel):
    path: str
    content: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class EditFileArgs(BaseModel):
    path: str
    old: str = Field(min_length=1)
    new: str
    replace_all: bool = Field(False, alias="all")
    model_config = ConfigDict(extra='ignore', frozen=True, populate_by_name=True)


class BashArgs(BaseModel):
    cmd: str
    model_config = ConfigDict(extra='ignore', frozen=True)


class GlobArgs(BaseModel):
    pattern: str = Field(validation_alias=AliasChoices("pattern", "pat"))
    root: str = Field(".", validation_alias=AliasChoices("root", "path"))
    model_config = ConfigDict(extra='ignore', frozen=True)
