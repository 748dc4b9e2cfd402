"""
Pydantic schemas for the exported conversation archive.

These models mirror the nested JSON inside conversations.json:
a list of conversations, each holding a mapping of node-id -> node,
where a node may carry a message.

Conversation-level fields are validated strictly (a conversation with a
non-numeric create_time is rejected), while message-level timestamps are
tolerant because exports from different app versions encode them
inconsistently.
"""
import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value
INT64_MIN = -2**63
INT64_MAX = 2**63 - 1
INT32_MIN = -2**31
INT32_MAX = 2**31 - 1


def coerce_timestamp(value: Any) -> float | None:
    """
    Accept only genuine numbers as timestamps.

    Strings, objects, booleans and null all become None, as do numbers
    that are not finite or do not fit in a 64-bit integer.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if math.isfinite(value) and INT64_MIN <= value < 2**63:
            return float(value)
        logger.debug("Ignoring out-of-range message timestamp: %r", value)
        return None
    if value is not None:
        logger.debug("Ignoring non-numeric message timestamp: %r", value)
    return None


# =============================================================================
# MESSAGE SCHEMAS
# =============================================================================

class Author(BaseModel):
    """Who wrote a message."""
    role: str = Field(description="user, assistant, system, tool, or anything else")
    name: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Content(BaseModel):
    """Message content: a type label plus heterogeneous parts."""
    model_config = ConfigDict(extra="allow")

    content_type: str
    parts: list[Any] = Field(default_factory=list)
    user_profile: Optional[str] = None
    user_instructions: Optional[str] = None


class AssetPointer(BaseModel):
    """A structured content part referring to a binary file in the archive."""
    asset_pointer: str = Field(description="e.g. file-service://file-abc123")
    content_type: str = Field(description="e.g. image_asset_pointer")
    size_bytes: Optional[int] = Field(default=None, ge=INT64_MIN, le=INT64_MAX)
    width: Optional[int] = Field(default=None, ge=INT32_MIN, le=INT32_MAX)
    height: Optional[int] = Field(default=None, ge=INT32_MIN, le=INT32_MAX)
    metadata: Optional[Any] = None


class Message(BaseModel):
    """A single message owned by a mapping node."""
    id: str
    author: Author
    create_time: Optional[float] = None
    update_time: Optional[float] = None
    content: Content
    status: Optional[str] = None
    end_turn: Optional[bool] = None
    weight: Optional[float] = None
    metadata: Optional[Any] = None
    recipient: Optional[str] = None
    channel: Optional[str] = None

    @field_validator("create_time", "update_time", mode="before")
    @classmethod
    def _flexible_time(cls, value: Any) -> float | None:
        return coerce_timestamp(value)

    @property
    def role(self) -> str:
        return self.author.role

    @property
    def is_hidden(self) -> bool:
        """True when metadata marks the message as hidden from the conversation."""
        if not isinstance(self.metadata, dict):
            return False
        return self.metadata.get("is_visually_hidden_from_conversation") is True

    @property
    def model_slug(self) -> str | None:
        if isinstance(self.metadata, dict):
            slug = self.metadata.get("model_slug")
            if isinstance(slug, str):
                return slug
        return None


# =============================================================================
# CONVERSATION SCHEMAS
# =============================================================================

class MappingNode(BaseModel):
    """A vertex in the conversation's node map."""
    id: str
    message: Optional[Message] = None
    parent: Optional[str] = None
    children: list[str] = Field(default_factory=list)


class Conversation(BaseModel):
    """One conversation thread from the export."""
    title: str
    create_time: float = Field(strict=True, allow_inf_nan=False, ge=INT64_MIN, lt=2**63)
    update_time: float = Field(strict=True, allow_inf_nan=False, ge=INT64_MIN, lt=2**63)
    mapping: dict[str, MappingNode]
    current_node: Optional[str] = None
    model_slug: Optional[str] = None
    default_model_slug: Optional[str] = None
    is_archived: Optional[bool] = None

    @property
    def model(self) -> str | None:
        """Conversation-level model identifier, if the export has one."""
        return self.model_slug or self.default_model_slug
