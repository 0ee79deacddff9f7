"""API request schemas for the assistant routes."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import ProviderIdentity


class _CamelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatBody(_CamelRequest):
    message: str
    context: Any = None
    preferred_provider: ProviderIdentity | None = Field(default=None, alias="preferredProvider")

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message cannot be empty")
        return value

    @field_validator("preferred_provider", mode="before")
    @classmethod
    def _parse_provider(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ProviderIdentity.parse(value)
        return value


class AnalyzeCodeBody(_CamelRequest):
    code: str
    context: str | None = None


class GenerateCodeBody(_CamelRequest):
    prompt: str
    language: str = "typescript"


class ExecuteCodeBody(_CamelRequest):
    code: str
    language: str = "csharp"
    include_compile_check: bool = Field(default=False, alias="includeCompileCheck")
    timeout_ms: int | None = Field(default=None, gt=0, alias="timeout")


class ValidateCodeBody(_CamelRequest):
    code: str
    language: str = "csharp"


class FileOperationBody(_CamelRequest):
    operation: Literal["read", "write", "analyze"]
    file_path: str = Field(alias="filePath")
    content: str | None = None


class AnalyzeProjectBody(_CamelRequest):
    query: str | None = None
    directory: str | None = None
