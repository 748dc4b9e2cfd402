#!/usr/bin/env python3
"""
Conversation export parser - decodes conversations.json

The export is a JSON array of conversations. Each conversation holds a
tree-shaped mapping of node-id -> node; nodes may carry a message.

Decoding is all-or-nothing: a document that is not JSON, is not an array,
or has a conversation missing title/timestamps/mapping raises ParseError.
Message-level oddities (bad timestamps, unknown content parts) are
tolerated further down the pipeline.
"""
import sys
from datetime import datetime, timezone

from pydantic import TypeAdapter, ValidationError

from schemas import Conversation

MAX_REPORTED_ERRORS = 5

_conversation_list = TypeAdapter(list[Conversation])


class ParseError(Exception):
    """Raised when the conversations document cannot be decoded."""
    pass


def format_validation_error(error: ValidationError) -> str:
    """Summarize the first few pydantic errors as 'loc: message' lines."""
    lines = []
    for err in error.errors()[:MAX_REPORTED_ERRORS]:
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<document>"
        lines.append(f"{loc}: {err.get('msg')}")
    remaining = error.error_count() - len(lines)
    if remaining > 0:
        lines.append(f"... and {remaining} more")
    return "\n  ".join(lines)


def parse_conversations(raw: str | bytes) -> list[Conversation]:
    """
    Decode the raw export document into Conversation records.

    Args:
        raw: Text (or UTF-8 bytes) of conversations.json

    Returns:
        Conversations in document order

    Raises:
        ParseError: If the document is malformed or a conversation lacks
            a required field
    """
    try:
        return _conversation_list.validate_json(raw)
    except ValidationError as e:
        raise ParseError(
            f"Failed to parse conversations document:\n  {format_validation_error(e)}"
        ) from e


def timestamp_to_iso(ts: float | None) -> str | None:
    """Convert Unix timestamp to ISO format string"""
    if ts is None:
        return None
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (ValueError, OSError, OverflowError):
        return None


def main():
    # Quick inspection: python parser.py conversations.json
    if len(sys.argv) != 2:
        print("Usage: python parser.py <conversations.json>")
        sys.exit(2)

    with open(sys.argv[1], 'rb') as f:
        raw = f.read()

    try:
        conversations = parse_conversations(raw)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Loaded {len(conversations)} conversations")
    for conv in conversations[:10]:
        created = timestamp_to_iso(conv.create_time) or "unknown"
        print(f"  {created[:10]}  {len(conv.mapping):>4} nodes  {conv.title}")
    if len(conversations) > 10:
        print(f"  ... and {len(conversations) - 10} more")


if __name__ == '__main__':
    main()
