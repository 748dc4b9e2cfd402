"""
Archive reader for exported conversation bundles.

The export is a zip holding conversations.json plus the binary files
(images, uploads) that messages point at.
"""
import zipfile
import zlib
from pathlib import Path

DEFAULT_CONVERSATIONS_ENTRY = "conversations.json"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ArchiveError(Exception):
    """Base class for archive failures."""
    pass


class ArchiveNotFoundError(ArchiveError):
    """Raised when the archive path does not exist."""
    pass


class ArchiveUnreadableError(ArchiveError):
    """Raised when the file exists but is not a readable zip."""
    pass


class EntryMissingError(ArchiveError):
    """Raised when a named entry is not present in the archive."""
    pass


# =============================================================================
# READER
# =============================================================================

def open_archive(path: str | Path) -> zipfile.ZipFile:
    """
    Open the archive read-only.

    Use as a context manager so the handle is closed after each lookup.

    Raises:
        ArchiveNotFoundError: If nothing exists at path
        ArchiveUnreadableError: If the file is not a valid zip
    """
    path = Path(path)
    if not path.exists():
        raise ArchiveNotFoundError(f"Archive not found: {path}")
    try:
        return zipfile.ZipFile(path, "r")
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveUnreadableError(f"Failed to read zip archive {path}: {e}") from e


def read_named_entry(archive: zipfile.ZipFile, name: str) -> bytes:
    """Read a whole entry by name."""
    try:
        return archive.read(name)
    except KeyError:
        raise EntryMissingError(f"{name} not found in zip file")
    except (zipfile.BadZipFile, zlib.error, OSError) as e:
        raise ArchiveUnreadableError(f"Failed to read {name} from zip: {e}") from e


def list_entries(archive: zipfile.ZipFile) -> list[str]:
    """Entry names in index order."""
    return archive.namelist()


def read_entry_at(archive: zipfile.ZipFile, index: int) -> tuple[str, bytes]:
    """Return (name, payload) of the entry at a given index."""
    info = archive.infolist()[index]
    try:
        return info.filename, archive.read(info)
    except (zipfile.BadZipFile, zlib.error, OSError) as e:
        raise ArchiveUnreadableError(f"Failed to read {info.filename} from zip: {e}") from e


def read_conversations_document(path: str | Path,
                                entry_name: str = DEFAULT_CONVERSATIONS_ENTRY) -> bytes:
    """Open the archive and return the raw conversations document."""
    with open_archive(path) as archive:
        return read_named_entry(archive, entry_name)
