from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.chat_message import ChatRole


class ChatRequest(BaseModel):
    message: Annotated[str, Field(min_length=1, max_length=4_000)]

    @field_validator("message", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v):
        stripped = v.strip() if isinstance(v, str) else v
        if isinstance(stripped, str) and not stripped:
            raise ValueError("message must not be empty")
        return stripped


class ChatMessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    role: ChatRole
    content: str
    created_at: datetime
