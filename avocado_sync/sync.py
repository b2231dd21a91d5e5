"""One sync pass: Readavocado -> Obsidian notes.

A pass is gated by the time since the last completed pass, then:

1. makes sure the root folder exists in the vault,
2. lists the books in the library,
3. creates a note for each book that doesn't have one yet,
4. walks the mapping and appends each note's new highlights,
5. records the pass time.

Settings are saved after every new note and after every appended batch, so
a failure midway keeps the progress made so far. ``lastSyncTime`` is only
written once the whole pass succeeds, so a failed pass is retried on the
next invocation regardless of the interval.
"""

import logging
import time
from typing import List, NamedTuple, Optional, Tuple

from avocado_sync import avocado_client, notify, vault
from avocado_sync.settings import Settings, acquire_lock, release_lock

log = logging.getLogger(__name__)

GATED = "gated"
LOCKED = "locked"
AUTH_FAILED = "auth_failed"
TRANSPORT_FAILED = "transport_failed"
COMPLETED = "completed"


class SyncResult(NamedTuple):
    status: str
    created: Tuple[str, ...] = ()
    updated: Tuple[str, ...] = ()


def _now_ms() -> int:
    return int(time.time() * 1000)


def minutes_since_last_sync(settings: Settings, now_ms: int) -> float:
    return (now_ms - settings.last_sync_time) / 1000 / 60


def is_due(settings: Settings, now_ms: int) -> bool:
    """True once strictly more than ``sync_interval`` minutes have passed."""
    return minutes_since_last_sync(settings, now_ms) > settings.sync_interval


def _materialize(collections, settings: Settings) -> List[str]:
    created = []
    for collection in collections:
        key, was_created = vault.ensure_document(collection, settings)
        if was_created:
            created.append(key)
            settings.save()
    return created


def _pull_increments(settings: Settings) -> List[str]:
    updated = []
    # Snapshot: set_cursor replaces values while we iterate
    for key, (collection_id, cursor) in list(settings.mapping.items()):
        increment = avocado_client.fetch_increment(settings.token, collection_id, cursor)
        if increment.content and vault.append_to_document(key, increment.content):
            updated.append(key)
        if increment.next_cursor != 0:
            settings.set_cursor(key, increment.next_cursor)
        settings.save()
        log.debug("%s: cursor %s -> %s", key, cursor, settings.mapping[key][1])
    return updated


def run_pass(settings: Settings, now_ms: Optional[int] = None) -> SyncResult:
    """Run one pass against already-loaded settings.

    Catalog failures are reported and end the pass quietly. Anything failing
    after that (writing a note, fetching a book's highlights) propagates.
    """
    if now_ms is None:
        now_ms = _now_ms()

    if not is_due(settings, now_ms):
        log.info(
            "Sync not initiated: %.1f minutes since last sync (interval %d)",
            minutes_since_last_sync(settings, now_ms), settings.sync_interval,
        )
        return SyncResult(GATED)

    vault.ensure_folder(settings.root_folder)

    try:
        collections = avocado_client.list_collections(settings.token)
    except avocado_client.AvocadoAuthError:
        notify.invalid_token()
        return SyncResult(AUTH_FAILED)
    except avocado_client.AvocadoTransportError as e:
        notify.sync_failed(str(e))
        return SyncResult(TRANSPORT_FAILED)

    notify.sync_started()

    created = _materialize(collections, settings)
    updated = _pull_increments(settings)

    settings.last_sync_time = now_ms
    settings.save()

    log.info(
        "Sync complete: %d new note(s), %d note(s) updated",
        len(created), len(updated),
    )
    notify.notify_summary(len(created), len(updated))
    return SyncResult(COMPLETED, tuple(created), tuple(updated))


def sync(now_ms: Optional[int] = None) -> SyncResult:
    """Load settings and run a pass, unless another pass holds the lock."""
    if not acquire_lock():
        log.warning("Another sync is running (lock held), skipping")
        return SyncResult(LOCKED)

    try:
        settings = Settings()
        return run_pass(settings, now_ms)
    finally:
        release_lock()
