from typing import List, Optional

from pydantic import BaseModel


class ChatBody(BaseModel):
    prompt: Optional[str] = None


class ChatResponse(BaseModel):
    response: str


class ToolSummary(BaseModel):
    name: str
    description: str


class McpTestResponse(BaseModel):
    message: str
    tools: List[ToolSummary]


class ResourceResponse(BaseModel):
    uri: str
    text: str
