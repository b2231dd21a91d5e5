"""Readavocado API client.

Fetches the list of books in the user's library and, per book, the next
batch of highlights after a cursor. Responses are positional JSON arrays;
they are converted into named records here and nowhere else.
"""

import logging
from typing import Any, List, NamedTuple, Union

import requests

from avocado_sync import config

log = logging.getLogger(__name__)

_INVALID_TOKEN_STATUS = 405


class AvocadoError(Exception):
    """Base class for Readavocado API failures."""


class AvocadoAuthError(AvocadoError):
    """The API rejected the token (HTTP 405)."""


class AvocadoTransportError(AvocadoError):
    """Network failure, unexpected status, or malformed response."""


class Collection(NamedTuple):
    """A book in the user's Readavocado library."""

    id: Union[int, str]
    title: str
    author: str
    cover: str


class Increment(NamedTuple):
    """New highlight content for a book.

    ``next_cursor`` of 0 means the cursor should not move.
    """

    content: str
    next_cursor: int


def _headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _url(path: str) -> str:
    return f"{config.AVOCADO_API_URL}{path}"


def _get(path: str, token: str) -> requests.Response:
    """Single-attempt GET. Raises AvocadoError subclasses on any failure."""
    url = _url(path)
    try:
        resp = requests.get(url, headers=_headers(token), timeout=config.HTTP_TIMEOUT)
    except requests.exceptions.RequestException as exc:
        raise AvocadoTransportError(
            f"Request to {url} failed: {type(exc).__name__}"
        ) from exc

    if resp.status_code == _INVALID_TOKEN_STATUS:
        raise AvocadoAuthError("Readavocado rejected the token")
    if not resp.ok:
        raise AvocadoTransportError(
            f"Readavocado returned {resp.status_code} for {path}"
        )
    return resp


def _json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise AvocadoTransportError("Readavocado returned invalid JSON") from exc


def _parse_collection(row: Any) -> Collection:
    if not isinstance(row, list) or len(row) < 4:
        raise AvocadoTransportError(f"Unexpected book record: {row!r}")
    book_id, title, author, cover = row[:4]
    return Collection(
        id=book_id,
        title=str(title),
        author="" if author is None else str(author),
        cover="" if cover is None else str(cover),
    )


def _parse_increment(payload: Any) -> Increment:
    if not isinstance(payload, list) or len(payload) < 2:
        raise AvocadoTransportError(f"Unexpected highlights payload: {payload!r}")
    content, next_cursor = payload[:2]
    try:
        next_cursor = int(next_cursor or 0)
    except (TypeError, ValueError) as exc:
        raise AvocadoTransportError(f"Invalid cursor in payload: {next_cursor!r}") from exc
    return Increment(content="" if content is None else str(content), next_cursor=next_cursor)


def list_collections(token: str) -> List[Collection]:
    """Fetch every book in the library."""
    data = _json(_get("obsidian/fetch/allbooks", token))
    if not isinstance(data, list):
        raise AvocadoTransportError("Expected a list of books from Readavocado")
    books = [_parse_collection(row) for row in data]
    log.debug("Fetched %d book(s) from Readavocado", len(books))
    return books


def fetch_increment(token: str, collection_id: Union[int, str], cursor: int) -> Increment:
    """Fetch highlights for one book starting at ``cursor``."""
    data = _json(_get(f"obsidian/fetch/{collection_id}/{cursor}", token))
    return _parse_increment(data)
