"""
Attachment resolver - finds the archive file an asset pointer refers to.

Pointers look like "file-service://file-abc123"; the matching file in the
archive is whichever entry name contains "abc123" (the export stores
them as e.g. "file-abc123-photo.png" or "images/abc123.png").
"""
import logging
from dataclasses import dataclass
from pathlib import Path

from archive import list_entries, open_archive, read_entry_at
from identity import extract_attachment_id
from schemas import AssetPointer

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "json": "application/json",
}


@dataclass
class ResolvedAttachment:
    """An asset pointer together with the archive file it resolved to."""
    descriptor: AssetPointer
    attachment_id: str
    payload: bytes = b""
    file_name: str = ""
    mime_type: str = ""

    @property
    def found(self) -> bool:
        return bool(self.file_name)


def guess_mime_type(file_name: str) -> str:
    """MIME type from the file extension only."""
    extension = file_name.rsplit(".", 1)[-1].lower()
    return MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


class AttachmentResolver:
    """
    Resolves asset pointers against an archive on disk.

    The archive is reopened for every lookup so no read state is shared
    between resolutions.
    """

    def __init__(self, archive_path: str | Path):
        self.archive_path = Path(archive_path)

    def find_entry(self, attachment_id: str) -> tuple[str, bytes] | None:
        """First entry (in index order) whose name contains attachment_id."""
        if not attachment_id:
            return None
        with open_archive(self.archive_path) as archive:
            for index, name in enumerate(list_entries(archive)):
                if name.endswith("/"):
                    continue
                if attachment_id in name:
                    return read_entry_at(archive, index)
        return None

    def resolve(self, descriptor: AssetPointer) -> ResolvedAttachment:
        """
        Resolve one descriptor.

        A pointer with no matching file still yields a ResolvedAttachment,
        with empty payload, file name and MIME type.
        """
        attachment_id = extract_attachment_id(descriptor.asset_pointer)
        resolved = ResolvedAttachment(descriptor=descriptor, attachment_id=attachment_id)

        match = self.find_entry(attachment_id)
        if match is None:
            logger.warning("File not found in archive for attachment: %s",
                           descriptor.asset_pointer)
            return resolved

        resolved.file_name, resolved.payload = match
        resolved.mime_type = guess_mime_type(resolved.file_name)
        return resolved
