from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RunAssistantRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    assistant_id: str = Field(..., alias="assistantId")
    thread_id: str | None = Field(default=None, alias="threadId")
    api_key_name: str = Field(..., alias="apiKeyName")
    wordpress_url: str = Field(..., alias="wordpressUrl")
    webhook_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("webhookUrl", "zapier_webhook_url", "webhook_url"),
    )


class ToolOutputRequest(BaseModel):
    output: Any = Field(..., description="Result of the tool call; non-string values are JSON encoded")


class HealthResponse(BaseModel):
    status: str = "ok"
    pending_tool_calls: int = 0
