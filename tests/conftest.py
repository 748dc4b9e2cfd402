"""
Shared pytest fixtures for importer tests.
"""
import json
import tempfile
import zipfile
from pathlib import Path
from typing import Generator

import pytest

from config import DEFAULT_SCHEMA_PATH

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-data"


def make_node(node_id: str, parent: str | None, children: list[str],
              message: dict | None = None) -> dict:
    """Build one raw mapping node."""
    return {"id": node_id, "message": message, "parent": parent, "children": children}


def make_message(msg_id: str, role: str, parts: list, content_type: str = "text",
                 create_time=None, metadata: dict | None = None) -> dict:
    """Build one raw message."""
    message = {
        "id": msg_id,
        "author": {"role": role, "name": None, "metadata": {}},
        "create_time": create_time,
        "content": {"content_type": content_type, "parts": parts},
        "status": "finished_successfully",
        "end_turn": True,
        "weight": 1.0,
        "recipient": "all",
    }
    if metadata is not None:
        message["metadata"] = metadata
    return message


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def schema_path() -> Path:
    """The bundled DDL script."""
    return DEFAULT_SCHEMA_PATH


@pytest.fixture
def sample_config(temp_dir) -> dict:
    """Sample configuration for testing."""
    return {
        "output_path": str(temp_dir / "conversations.db"),
        "schema_path": str(DEFAULT_SCHEMA_PATH),
        "conversations_entry": "conversations.json",
        "log_level": "WARNING"
    }


@pytest.fixture
def sample_chatgpt_conversation() -> dict:
    """
    Sample conversation export.

    client-created-root -> sys1 (hidden) -> usr1 (image + text) -> ast1 -> usr2 -> ast2
    """
    return {
        "title": "Cat Picture",
        "create_time": 1703275200.0,
        "update_time": 1703278800.0,
        "model_slug": "gpt-4o-mini",
        "current_node": "ast2",
        "mapping": {
            "client-created-root": make_node("client-created-root", None, ["sys1"]),
            "sys1": make_node("sys1", "client-created-root", ["usr1"], make_message(
                "sys1", "system", [""],
                metadata={"is_visually_hidden_from_conversation": True},
            )),
            "usr1": make_node("usr1", "sys1", ["ast1"], make_message(
                "usr1", "user",
                [
                    {
                        "content_type": "image_asset_pointer",
                        "asset_pointer": "file-service://file-abc123",
                        "size_bytes": 1024,
                        "width": 64,
                        "height": 48,
                        "metadata": {"dalle": None},
                    },
                    "What is in this picture?",
                ],
                content_type="multimodal_text",
                create_time=1703275260.0,
            )),
            "ast1": make_node("ast1", "usr1", ["usr2"], make_message(
                "ast1", "assistant", ["It is a cat."],
                create_time=1703275320.0,
                metadata={"model_slug": "gpt-4o"},
            )),
            "usr2": make_node("usr2", "ast1", ["ast2"], make_message(
                "usr2", "user", ["Thanks!"],
                create_time="not-a-number",
            )),
            "ast2": make_node("ast2", "usr2", [], make_message(
                "ast2", "assistant", ["You're welcome."],
                create_time=1703275440.0,
                metadata={},
            )),
        },
    }


@pytest.fixture
def rootless_conversation() -> dict:
    """Conversation whose only node has no message."""
    return {
        "title": "Empty Thread",
        "create_time": 1703000000,
        "update_time": 1703000000,
        "mapping": {
            "root": make_node("root", None, []),
        },
    }


@pytest.fixture
def sample_export(sample_chatgpt_conversation, rootless_conversation) -> list:
    """Sample conversations.json content."""
    return [sample_chatgpt_conversation, rootless_conversation]


@pytest.fixture
def make_archive(temp_dir):
    """Factory that writes an export zip into temp_dir."""
    def _make(conversations=None, files: dict | None = None,
              name: str = "export.zip", raw_document: bytes | None = None) -> Path:
        path = temp_dir / name
        with zipfile.ZipFile(path, "w") as zf:
            if raw_document is not None:
                zf.writestr("conversations.json", raw_document)
            elif conversations is not None:
                zf.writestr("conversations.json", json.dumps(conversations))
            for entry_name, payload in (files or {}).items():
                zf.writestr(entry_name, payload)
        return path

    return _make


@pytest.fixture
def sample_archive(make_archive, sample_export) -> Path:
    """Export zip with the sample conversations and one image."""
    return make_archive(sample_export, files={
        "file-abc123-cat.png": PNG_BYTES,
        "notes/readme.txt": b"unrelated",
    })
