"""
Stable identifiers for imported rows.

The export does not give conversations an id we can rely on, so one is
derived from the conversation's own content. Attachment ids are derived
from the asset pointer.
"""
import hashlib
import struct

from schemas import Conversation

CONVERSATION_ID_PREFIX = "conv_"
FILE_ID_MARKER = "file-"


def derive_conversation_id(conv: Conversation) -> str:
    """
    Derive a deterministic conversation id.

    Uses the smallest message id among user/assistant messages whose first
    part is non-empty text. Falls back to a hash of the title and the bit
    pattern of create_time when no such message exists.
    """
    candidates = []
    for node in conv.mapping.values():
        msg = node.message
        if msg is None or msg.role not in ("user", "assistant"):
            continue
        parts = msg.content.parts
        if parts and isinstance(parts[0], str) and parts[0]:
            candidates.append(msg.id)

    if candidates:
        return f"{CONVERSATION_ID_PREFIX}{min(candidates)}"

    digest = hashlib.sha256()
    digest.update(conv.title.encode("utf-8"))
    digest.update(struct.pack("<d", conv.create_time))
    return f"{CONVERSATION_ID_PREFIX}{digest.hexdigest()[:16]}"


def extract_attachment_id(pointer: str) -> str:
    """
    Bare id from a pointer like "file-service://file-1qkofbVQL3KKk9uYGpz691".

    Takes everything after the last "file-"; the whole pointer when the
    marker is absent.
    """
    _, marker, tail = pointer.rpartition(FILE_ID_MARKER)
    return tail if marker else pointer
