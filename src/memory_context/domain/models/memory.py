"""Memory record domain model."""

import re
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from memory_context.core.constants import (
    PART_TAG_INFIX,
    TAG_AI_OUTPUT,
    TAG_MANUAL,
    TAG_SUMMARY,
    TAG_USER_INPUT,
)
from memory_context.domain.models.utils import now_millis

_PART_SUFFIX_RE = re.compile(rf"{PART_TAG_INFIX}\d+$")


class MemoryTag(StrEnum):
    """Tags the retrieval logic recognizes. Any other string is a valid tag too.

    Members format as their value, so they can be passed wherever a tag string is expected.
    """

    MANUAL = TAG_MANUAL
    SUMMARY = TAG_SUMMARY
    USER_INPUT = TAG_USER_INPUT
    AI_OUTPUT = TAG_AI_OUTPUT


def effective_tag(tag: str) -> str:
    """Strip the ``_part_<n>`` suffix that chunked saves append to a tag."""
    return _PART_SUFFIX_RE.sub("", tag)


def part_tag(tag: str, part: int) -> str:
    """Tag for the ``part``-th (1-based) chunk of a split memory."""
    return f"{tag}{PART_TAG_INFIX}{part}"


class MemoryRecord(BaseModel):
    """A stored unit of text with retrieval metadata.

    Records are owned by the memory store and never modified by retrieval.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    text: str
    embedding: list[float] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_millis, description="Creation time, epoch milliseconds")
    tag: str = TAG_MANUAL
    session_id: str | None = None
    emotion_label: str | None = None

    @property
    def effective_tag(self) -> str:
        return effective_tag(self.tag)
