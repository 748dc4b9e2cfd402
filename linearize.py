"""
Tree linearizer - flattens a conversation's node map into ordered messages.

The mapping is expected to be a tree, but nothing in the export format
guarantees it: nodes may be shared between parents, point back at their
ancestors, or reference children that do not exist. The walk keeps a
visited set and uses an explicit stack, so none of that can loop or blow
the recursion limit.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from extractor import is_empty_content
from schemas import Conversation, MappingNode, Message

logger = logging.getLogger(__name__)

CLIENT_ROOT = "client-created-root"


@dataclass
class LinearizedMessage:
    """A message in emission order with the node id recorded as its parent."""
    message_id: str
    message: Message
    parent_id: Optional[str]
    order_index: int


def find_root_id(mapping: dict[str, MappingNode]) -> str | None:
    """
    Find the node to start the walk from.

    First node (in mapping order) with no parent or whose parent is the
    client-created root sentinel; otherwise the sentinel key itself.
    """
    for node_id, node in mapping.items():
        if node.parent is None or node.parent == CLIENT_ROOT:
            return node_id
    if CLIENT_ROOT in mapping:
        return CLIENT_ROOT
    return None


def should_skip_message(msg: Message) -> bool:
    """Hidden messages and messages without real content are not imported."""
    return msg.is_hidden or is_empty_content(msg.content)


def linearize_conversation(conv: Conversation) -> list[LinearizedMessage]:
    """
    Walk the mapping depth-first (pre-order) from its root.

    Children are visited in the order the export lists them. A skipped
    message does not stop the walk; its children record the skipped
    node's id as their parent.
    """
    mapping = conv.mapping
    root_id = find_root_id(mapping)
    if root_id is None:
        logger.debug("No root node found in conversation %r", conv.title)
        return []

    result = []
    visited = set()
    stack = [(root_id, None)]

    while stack:
        node_id, parent_id = stack.pop()
        if node_id in visited:
            logger.debug("Node %s reached more than once, skipping", node_id)
            continue
        visited.add(node_id)

        node = mapping.get(node_id)
        if node is None:
            continue

        msg = node.message
        if msg is not None and not should_skip_message(msg):
            result.append(LinearizedMessage(
                message_id=msg.id,
                message=msg,
                parent_id=parent_id,
                order_index=len(result),
            ))

        # Reversed so the first child is popped first
        for child_id in reversed(node.children):
            stack.append((child_id, node_id))

    return result
