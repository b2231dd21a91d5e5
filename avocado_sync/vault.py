"""Obsidian vault integration.

Each Readavocado book becomes one Markdown note under the configured root
folder. Notes are created with a short header and grow by appending the
highlight batches returned by the API.

Notes are identified by vault-relative POSIX paths ("Avocado/My Book.md"),
which are also the keys of the settings mapping.
"""

import logging
import re
from pathlib import Path
from typing import Tuple
from urllib.parse import quote

from avocado_sync import config
from avocado_sync.avocado_client import Collection
from avocado_sync.settings import Settings

log = logging.getLogger(__name__)

_TITLE_STRIP = re.compile(r"[^A-Za-z ]")

# Characters JavaScript's encodeURI leaves alone, besides letters and digits
_URI_SAFE = ";,/?:@&=+$-_.!~*'()#"

_HEADER_TEMPLATE = """\
# {title}
{cover}
## Info
- Title: {title}
- Author: {author}
- [Open in Readavocado](https://readavocado.com/app/{link})
## Highlights
"""


def _vault_dir() -> Path:
    return Path(config.OBSIDIAN_VAULT_PATH)


def sanitize_title(title: str) -> str:
    """Reduce a book title to ASCII letters and spaces for use as a note name."""
    return _TITLE_STRIP.sub("", title).strip()


def note_key(root_folder: str, title: str) -> str:
    return f"{root_folder}/{sanitize_title(title)}.md"


def resolve(key: str) -> Path:
    """Return the filesystem path for a vault-relative key."""
    return _vault_dir() / key


def render_header(collection: Collection) -> str:
    cover = f"![cover]({collection.cover})" if "http" in collection.cover else ""
    return _HEADER_TEMPLATE.format(
        title=collection.title,
        cover=cover,
        author=collection.author,
        link=quote(collection.title, safe=_URI_SAFE),
    )


def ensure_folder(root_folder: str) -> Path:
    """Create the root folder in the vault if it doesn't exist.

    A regular file occupying the path makes mkdir raise.
    """
    folder = resolve(root_folder)
    if not folder.is_dir():
        folder.mkdir(parents=True, exist_ok=True)
        log.info("Created vault folder: %s", folder)
    return folder


def ensure_document(collection: Collection, settings: Settings) -> Tuple[str, bool]:
    """Create the note for a book unless a file is already at its path.

    Returns (key, created). A new note is registered in the mapping with
    cursor 1. An existing file is left alone even when it is not mapped,
    which also means a second book whose title sanitizes to the same name
    is skipped.
    """
    key = note_key(settings.root_folder, collection.title)
    path = resolve(key)

    if path.is_file():
        if not settings.has_mapping(key):
            log.debug("Note exists but is not tracked, skipping: %s", key)
        return key, False

    # A directory here makes write_text raise IsADirectoryError
    path.write_text(render_header(collection), encoding="utf-8")
    settings.add_mapping(key, collection.id)
    log.info("Created note: %s", key)
    return key, True


def append_to_document(key: str, content: str) -> bool:
    """Append content verbatim to a note. Returns False if the note is gone."""
    path = resolve(key)
    if not path.is_file():
        log.warning("Note %s no longer exists, not appending", key)
        return False
    if not content:
        return True

    with path.open("a", encoding="utf-8") as f:
        f.write(content)
    return True
