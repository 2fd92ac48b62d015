"""Token usage reported by the provider for a single completion."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Usage(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    prompt_tokens: int = Field(ge=0)
    completion_tokens: int = Field(ge=0)
    model_name: str = Field(min_length=1)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


__all__ = ["Usage"]
