"""Pydantic request models for API endpoints.

The wire format is camelCase; fields are declared in snake_case and aliased.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePublication(CamelModel):
    title: str = ""
    description: str = ""
    genre: str | None = None


class UpdatePublication(CamelModel):
    title: str | None = None
    description: str | None = None
    genre: str | None = None
    set_active: bool | None = None


class CreateContext(CamelModel):
    name: str = ""
    type: str = ""
    content: str = ""


class UpdateContext(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    name: str | None = None
    type: str | None = None
    content: str | None = None


class ChatMessage(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    role: str
    content: str
    id: str | None = None
    timestamp: str | None = None


class CreateSession(CamelModel):
    name: str = ""
    mode: str = ""
    messages: list[ChatMessage] | None = None
    model: str | None = None


class UpdateSession(CamelModel):
    name: str | None = None
    mode: str | None = None
    messages: list[ChatMessage] | None = None
    model: str | None = None


class RenameSession(CamelModel):
    name: str = ""
    publication_id: str | None = None


class SystemPromptBody(CamelModel):
    mode: str
    prompt: str
    publication_id: str | None = None


class ChatBody(CamelModel):
    message: str = ""
    mode: str = ""
    publication_id: str | None = None
    session_id: str | None = None
    system_prompt: str | None = None
    conversation_history: list[ChatMessage] | None = None
    model: str | None = None


class MigrateBody(CamelModel):
    publication_id: str | None = None
