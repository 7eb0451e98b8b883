"""
Directory models — sessions, models and personas as returned by the backend.

Session list entries come straight from the backend's ORM rows, so the Go
field names (SessionID, ModelName, ...) are accepted next to snake_case.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class Session(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    id: str = Field(validation_alias=AliasChoices("id", "session_id", "SessionID"))
    model_name: str = Field("", validation_alias=AliasChoices("model_name", "ModelName"))
    persona: Optional[str] = Field(None, validation_alias=AliasChoices("persona", "PersonaName"))
    title: str = Field("", validation_alias=AliasChoices("title", "Title"))
    last_activity: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("last_activity", "last_message_at", "LastMessageAt"),
    )
    message_count: int = Field(0, validation_alias=AliasChoices("message_count", "MessageCount"))


class ModelInfo(BaseModel):
    name: str
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        # /api/models may list bare model names
        if isinstance(data, str):
            return {"name": data}
        return data


class Persona(BaseModel):
    name: str
    content: str = ""


class HistoryMessage(BaseModel):
    """One entry of a session's stored history (backend message ids are not kept)."""
    role: str
    content: str = ""
