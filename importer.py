#!/usr/bin/env python3
"""
Archive importer - loads an exported conversation zip into SQLite.

Reads conversations.json from the archive, walks every conversation
tree, and writes conversations, messages and attachments (with their
file contents) into a single database.

Usage:
    python importer.py export.zip                    # writes conversations.db
    python importer.py export.zip -o history.db      # custom output path
    python importer.py export.zip --schema my.sql    # custom DDL script
"""
import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from archive import DEFAULT_CONVERSATIONS_ENTRY, ArchiveError, read_conversations_document
from attachments import AttachmentResolver
from config import configure_logging, load_config, validate_config
from extractor import extract_content_and_assets
from identity import derive_conversation_id
from linearize import linearize_conversation
from parser import ParseError, parse_conversations
from schemas import Conversation, Message
from store import ConversationStore, StoreError

logger = logging.getLogger(__name__)


@dataclass
class ImportStats:
    """Counts accumulated over one import run"""
    conversations: int = 0
    messages: int = 0
    attachments: int = 0
    missing_attachments: int = 0


def resolve_model_slug(msg: Message, conv: Conversation) -> str | None:
    """
    Model attribution for a message.

    Only assistant messages get one: the message's own metadata wins,
    then the conversation's default.
    """
    if msg.role != "assistant":
        return None
    return msg.model_slug or conv.model


def import_conversation(store: ConversationStore, conv: Conversation,
                        resolver: AttachmentResolver, stats: ImportStats) -> str:
    """Write one conversation with its messages and attachments. Returns its id."""
    conv_id = derive_conversation_id(conv)

    store.upsert_conversation(
        conv_id,
        conv.title,
        conv.create_time,
        conv.update_time,
        conv.model,
        bool(conv.is_archived),
    )
    stats.conversations += 1

    for item in linearize_conversation(conv):
        msg = item.message
        text, assets = extract_content_and_assets(msg.content)

        store.upsert_message(
            item.message_id,
            conv_id,
            item.parent_id,
            msg.role,
            msg.content.content_type,
            text,
            msg.create_time,
            resolve_model_slug(msg, conv),
            item.order_index,
            bool(assets),
        )
        stats.messages += 1

        for asset_order, descriptor in enumerate(assets):
            resolved = resolver.resolve(descriptor)
            store.upsert_attachment(
                resolved.attachment_id,
                item.message_id,
                descriptor.asset_pointer,
                descriptor.content_type,
                descriptor.size_bytes,
                descriptor.width,
                descriptor.height,
                descriptor.metadata,
                asset_order,
                resolved.payload,
                resolved.file_name,
                resolved.mime_type,
            )
            stats.attachments += 1
            if not resolved.found:
                stats.missing_attachments += 1

    return conv_id


def import_conversations(store: ConversationStore, conversations: list[Conversation],
                         resolver: AttachmentResolver) -> ImportStats:
    """
    Import all conversations in one transaction.

    Foreign keys are off for the duration: a message's parent id is a
    node id that may belong to a filtered-out node, or to one written
    later in the run.
    """
    stats = ImportStats()

    with store.foreign_keys_disabled():
        for conv in conversations:
            conv_id = import_conversation(store, conv, resolver, stats)
            logger.debug("Imported conversation %s (%s)", conv_id, conv.title)

    return stats


def run_import(archive_path: str | Path, output_path: str | Path,
               schema_path: str | Path,
               entry_name: str = DEFAULT_CONVERSATIONS_ENTRY) -> ImportStats:
    """
    Full pipeline: archive -> parsed conversations -> database.

    Raises:
        ArchiveError: If the archive or its conversations document can't be read
        ParseError: If the document can't be decoded
        StoreError: If the database can't be created or written
    """
    print(f"Extracting {entry_name} from {archive_path}")
    raw = read_conversations_document(archive_path, entry_name)

    print("Parsing conversations data...")
    conversations = parse_conversations(raw)

    print(f"Creating SQLite database at {output_path}")
    with ConversationStore.open(output_path, schema_path) as store:
        print(f"Importing {len(conversations)} conversations...")
        return import_conversations(store, conversations, AttachmentResolver(archive_path))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import exported conversations from a zip file into a SQLite database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python importer.py export.zip                 Import into conversations.db
  python importer.py export.zip -o chats.db     Import into chats.db
        """
    )

    parser.add_argument('archive', type=Path,
                        help='Path to the zip file containing conversations.json')
    parser.add_argument('-o', '--output', type=Path, metavar='PATH',
                        help='Output SQLite database (default: conversations.db)')
    parser.add_argument('--schema', type=Path, metavar='PATH',
                        help='DDL script to apply before importing (default: bundled schema.sql)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log tolerated input problems')

    args = parser.parse_args(argv)

    try:
        config = load_config()
    except (ValueError, OSError) as e:
        print(f"Configuration error: Failed to load config: {e}", file=sys.stderr)
        return 1

    if args.output:
        config["output_path"] = str(args.output)
    if args.schema:
        config["schema_path"] = str(args.schema)

    is_valid, error = validate_config(config)
    if not is_valid:
        print(f"Configuration error: {error}", file=sys.stderr)
        return 1

    configure_logging(config, verbose=args.verbose)

    try:
        stats = run_import(
            args.archive,
            config["output_path"],
            config["schema_path"],
            config["conversations_entry"],
        )
    except (ArchiveError, ParseError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Print summary
    print()
    print("=" * 50)
    print("IMPORT COMPLETE")
    print("=" * 50)
    print(f"Conversations:          {stats.conversations}")
    print(f"Messages:               {stats.messages}")
    print(f"Attachments:            {stats.attachments}")
    if stats.missing_attachments:
        print(f"Missing attachment files: {stats.missing_attachments}")
    print(f"\nDatabase: {config['output_path']}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
