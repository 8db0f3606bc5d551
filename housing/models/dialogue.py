"""Conversation turn records."""

from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"


class Turn(BaseModel):
    """One message in the call transcript."""

    role: Role
    text: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.text}
