from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ToolSpec(BaseModel):
    name: str
    description: str
    args: Dict[str, str] = Field(default_factory=dict)
    mutating: bool = False


class ToolCallRequest(BaseModel):
    tool: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    tool: str
    ok: bool
    result: Any = None
    error: Optional[str] = None
