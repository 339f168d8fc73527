from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Speaker of a turn, as understood by the OpenAI message formats."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Turn(BaseModel):
    """One role-tagged message of a session. Frozen once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class Session(BaseModel):
    """A conversation: an opaque id and its ordered turns.

    The turn list is only ever appended to; replaying it yields exactly the
    context the backends saw on the most recent call.
    """

    id: str
    messages: list[Turn] = Field(default_factory=list)

    def as_messages(self) -> list[dict[str, str]]:
        return [turn.as_message() for turn in self.messages]


class GenerationResult(BaseModel):
    """Outcome of one orchestrated generation. Only `text` is persisted."""

    text: str = Field(min_length=1)
    model_used: str
    used_fallback: bool = False


class UploadArtifact(BaseModel):
    """An uploaded file as handed to upload triage. Never stored directly."""

    name: str
    declared_type: str | None = None
    declared_size: float | None = None
    raw_content: str | bytes | None = None
    user_instructions: str | None = None


# ---------------------------------------------------------------------------
# HTTP payloads (camelCase on the wire)
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    session_id: str | None = Field(default=None, description="Existing session id; a new one is minted when absent.")
    message: str = Field(..., min_length=1, description="The user's chat message.")


class UploadRequest(_CamelModel):
    session_id: str | None = Field(default=None)
    file_name: str = Field(..., min_length=1)
    file_type: str | None = Field(default=None, description="Declared MIME type of the upload.")
    file_size: float | None = Field(default=None, ge=0, description="Declared size in bytes.")
    file_content: str | None = Field(default=None, description="Text content, absent for binary uploads.")
    instructions: str | None = Field(default=None, description="Free-text request from the user.")

    def to_artifact(self) -> UploadArtifact:
        return UploadArtifact(
            name=self.file_name,
            declared_type=self.file_type,
            declared_size=self.file_size,
            raw_content=self.file_content,
            user_instructions=self.instructions,
        )


class TurnResponse(_CamelModel):
    assistant_text: str
    model_used: str
    from_fallback: bool
    session_id: str
