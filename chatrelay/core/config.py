"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pathlib import Path
from typing import Annotated
from typing import Literal

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import NoDecode

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "https://localhost:3000",
    "https://localhost:8000",
    "http://0.0.0.0:8000",
]


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        openai_api_key: API key for the OpenAI backends.
        openai_base_url: Optional override of the OpenAI API base URL.
        primary_model: Model id of the primary (Responses API) tier.
        primary_attempts: How many times the primary tier is tried before falling back.
        secondary_model: Model id of the secondary (Chat Completions) tier.
        secondary_attempts: How many times the secondary tier is tried.
        secondary_max_output_tokens: Explicit output cap sent to the secondary tier.
        empty_completion_sentinel: Text returned when the last tier answers with no content.
        retry_wait_seconds: Pause between attempts inside one tier.
        llm_call_timeout: Upper bound in seconds for a single backend call.
        upload_max_chars: Character budget for uploaded file content folded into a turn.
        max_request_bytes: Largest accepted request body.
        cors_allowed_origins: List of allowed origins for CORS.
        static_dir: Directory of the optional single-page frontend.
        log_level: Level of the application loggers.
        LLM_CONNECT_TIMEOUT: LLM client connect timeout in seconds.
        LLM_READ_TIMEOUT: LLM client read timeout in seconds.
    """

    openai_api_key: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)

    primary_model: str = Field(default="gpt-5.1")
    primary_attempts: int = Field(default=2, ge=1)
    secondary_model: str = Field(default="gpt-4.1")
    secondary_attempts: int = Field(default=1, ge=1)
    secondary_max_output_tokens: int = Field(default=32_768, gt=0)
    empty_completion_sentinel: str = Field(default="[No content returned by chat completion]", min_length=1)

    retry_wait_seconds: float = Field(default=1.0, ge=0)
    llm_call_timeout: float = Field(default=600.0, gt=0, description="10 minutes for very large generations.")

    upload_max_chars: int = Field(default=200_000)
    max_request_bytes: int = Field(default=20 * 1024 * 1024)

    # NoDecode lets a comma-separated env value reach the validator unparsed
    cors_allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
    )
    static_dir: Path = Field(default=Path("frontend"))
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="DEBUG")

    LLM_CONNECT_TIMEOUT: float = Field(default=10.0, description="LLM client connect timeout in seconds.")
    LLM_READ_TIMEOUT: float = Field(default=600.0, description="LLM client read timeout in seconds.")

    model_config = {
        "env_file": ".env",
        "protected_namespaces": ("settings_",),
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("upload_max_chars")  # type: ignore
    @classmethod
    def check_upload_budget(cls, v: int) -> int:
        """The budget is split into equal head and tail halves, so it must be positive and even."""
        if v <= 0 or v % 2:
            raise ValueError("upload_max_chars must be a positive even number")
        return v

    @field_validator("log_level", mode="before")  # type: ignore
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.

        Args:
            v: The value from the environment or direct assignment.

        Returns:
            A list of strings representing allowed CORS origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)


settings = Settings()
