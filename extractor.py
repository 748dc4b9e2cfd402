"""
Content extraction - splits message parts into text and attachments.

Parts of a message's content are either plain strings or JSON objects.
Objects that look like asset pointers become attachment descriptors;
anything else is ignored.
"""
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from schemas import AssetPointer, Content

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class AttachmentPart:
    descriptor: AssetPointer


@dataclass(frozen=True)
class UnknownPart:
    raw: Any


ContentPart = TextPart | AttachmentPart | UnknownPart


def classify_part(part: Any) -> ContentPart:
    """Tag a raw content part as text, attachment, or unknown."""
    if isinstance(part, str):
        return TextPart(part)
    if isinstance(part, dict):
        try:
            return AttachmentPart(AssetPointer.model_validate(part))
        except ValidationError:
            logger.debug("Dropping content part that is not an asset pointer: %s",
                         sorted(part.keys()))
    return UnknownPart(part)


def extract_content_and_assets(content: Content) -> tuple[str | None, list[AssetPointer]]:
    """
    Extract (text, attachments) from message content.

    The last text part wins: multimodal messages usually put the image
    first and the instruction text last.
    """
    text = None
    assets = []

    for part in map(classify_part, content.parts):
        if isinstance(part, TextPart):
            text = part.text
        elif isinstance(part, AttachmentPart):
            assets.append(part.descriptor)

    return text, assets


def is_empty_content(content: Content) -> bool:
    """True when there are no parts, or every part is whitespace-only text."""
    if not content.parts:
        return True
    return all(isinstance(part, str) and not part.strip() for part in content.parts)
