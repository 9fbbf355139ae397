"""Core data models for mcpsim."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

PROVIDER_TYPES = ("file", "git", "api", "database")

REQUEST_COMPLETED = "completed"
REQUEST_FAILED = "failed"

INTEGRATION_PROCESSING = "processing"
INTEGRATION_COMPLETED = "completed"
INTEGRATION_FAILED = "failed"
INTEGRATION_PUSH_PROCESSED = "push_processed"


@dataclass
class Tool:
    id: int
    name: str  # dispatch key, unique
    description: str
    schema: dict  # {"type": "object", "properties": {...}, "required": [...]}
    category: str = "general"
    enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class ContextProvider:
    id: int
    name: str
    type: str  # "file" | "git" | "api" | "database"
    config: dict = field(default_factory=dict)
    enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ToolRequest:
    id: int
    tool_id: int | None  # may point at a deleted tool
    input: Any  # params exactly as received
    output: Any
    status: str  # "completed" | "failed"
    error: str | None = None
    execution_time: int = 0  # milliseconds
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class CacheItem:
    id: int
    provider_id: int | None
    key: str  # "<type>:<discriminator>"
    value: Any
    metadata: dict = field(default_factory=dict)
    expires_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)

    def is_fresh(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now()) < self.expires_at


@dataclass
class PRIntegration:
    id: int
    repo_url: str
    branch: str
    pr_number: int | None
    status: str  # "processing" | "completed" | "failed" | "push_processed"
    mcp_context: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class ToolResult:
    """Outcome of one dispatcher call."""

    success: bool
    execution_time: int
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ContextExtractionResult:
    provider_id: int
    key: str
    value: Any
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_cache_item(cls, item: CacheItem) -> ContextExtractionResult:
        return cls(
            provider_id=item.provider_id,
            key=item.key,
            value=item.value,
            metadata=item.metadata,
        )
