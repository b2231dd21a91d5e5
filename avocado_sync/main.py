"""avocado-sync entry point.

One-shot script: pulls new Readavocado highlights into the Obsidian vault,
then exits. Run it on a schedule via cron or launchd, or keep it running
with --watch.
"""

import logging
import os
import sys
import time
from datetime import datetime, timezone

log = logging.getLogger("avocado_sync")

_VERSION = "0.1.0"

_HELP = """\
Usage: avocado-sync <command>

  avocado-sync --sync              Pull new highlights now (default)
  avocado-sync --watch             Keep running, syncing when the interval is due
  avocado-sync --init              First-time setup wizard
  avocado-sync --status            Show settings and per-book sync progress

Settings:
  --set-token TOKEN                Readavocado token (https://readavocado.com/user)
  --set-folder FOLDER              Vault folder for notes (resets sync progress)
  --set-interval MINUTES           Minimum minutes between syncs

Options:
  -h, --help                       Show this help
  -V, --version                    Show version
"""


def _flag_value(flag: str) -> str | None:
    """Return the argument following ``flag`` on the command line."""
    idx = sys.argv.index(flag)
    if idx + 1 >= len(sys.argv) or sys.argv[idx + 1].startswith("--"):
        print(f"Error: {flag} needs a value. See 'avocado-sync --help'.")
        return None
    return sys.argv[idx + 1]


def _mask_value(value: str) -> str:
    """Mask a secret for display, showing first/last 4 chars."""
    if len(value) > 12:
        return value[:4] + "..." + value[-4:]
    return value


def _format_ago(millis: int) -> str:
    if not millis:
        return "never"
    then = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    delta = datetime.now(timezone.utc) - then
    seconds = delta.total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        mins = int(seconds / 60)
        return f"{mins} min{'s' if mins != 1 else ''} ago"
    if seconds < 86400:
        hours = int(seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    days = delta.days
    return f"{days} day{'s' if days != 1 else ''} ago"


def _set_token(token: str) -> None:
    from avocado_sync.settings import Settings

    settings = Settings()
    settings.set_token(token.strip())
    settings.save()
    print(f"  Token saved ({_mask_value(settings.token)}).")


def _set_folder(folder: str) -> None:
    from avocado_sync.settings import Settings

    folder = folder.strip().strip("/")
    if not folder:
        print("Error: the folder must be a path inside the vault.")
        return

    settings = Settings()
    tracked = len(settings.mapping)
    settings.set_root_folder(folder)
    settings.save()
    print(f"  Notes will be written to '{settings.root_folder}'.")
    if tracked:
        print(f"  Cleared sync progress for {tracked} book{'s' if tracked != 1 else ''}.")


def _set_interval(value: str) -> None:
    from avocado_sync.settings import Settings

    try:
        minutes = int(value)
    except ValueError:
        print(f"Error: interval must be a whole number of minutes, got '{value}'.")
        return
    if minutes < 0:
        print("Error: interval cannot be negative.")
        return

    settings = Settings()
    settings.sync_interval = minutes
    settings.save()
    print(f"  Sync interval set to {minutes} minute{'s' if minutes != 1 else ''}.")


def _status() -> None:
    """Print settings and per-book progress to the terminal."""
    from avocado_sync import config
    from avocado_sync.settings import Settings

    settings = Settings()

    print()
    print("  avocado-sync")
    print("  " + "─" * 40)
    print(f"  Vault:     {config.OBSIDIAN_VAULT_PATH or '(not set)'}")
    print(f"  Folder:    {settings.root_folder}")
    token = _mask_value(settings.token) if settings.has_token else "(not set)"
    print(f"  Token:     {token}")
    print(f"  Interval:  {settings.sync_interval} min")
    print(f"  Last sync: {_format_ago(settings.last_sync_time)}")

    mapping = settings.mapping
    print(f"  Books:     {len(mapping)} tracked")
    if mapping:
        print()
        for key, (collection_id, cursor) in mapping.items():
            print(f"    {key}  (book {collection_id}, next batch {cursor})")
    print()


def _sync_once() -> None:
    """Run a single pass and report failures the user can act on."""
    from avocado_sync import avocado_client, config, sync

    config.setup_logging()
    try:
        result = sync.sync()
    except avocado_client.AvocadoAuthError:
        print(
            "\n  Readavocado rejected your token."
            "\n  Set a new one with: avocado-sync --set-token TOKEN\n"
        )
        return
    except avocado_client.AvocadoTransportError as e:
        print(
            "\n  Could not fetch highlights from Readavocado."
            f"\n  {e}"
            "\n  Progress so far was saved; the next run will retry.\n"
        )
        return
    except Exception:
        log.exception("Unexpected error")
        raise

    if result.status == sync.AUTH_FAILED:
        print(
            "\n  Readavocado rejected your token."
            "\n  Set a new one with: avocado-sync --set-token TOKEN\n"
        )
    elif result.status == sync.TRANSPORT_FAILED:
        print(
            "\n  Could not connect to Readavocado."
            "\n  Check your network connection and try again.\n"
        )


def _watch() -> None:
    """Run passes on a fixed cadence until interrupted."""
    from avocado_sync import avocado_client, config, sync

    config.setup_logging()
    log.info("Watching for new highlights (checking every %ds)", config.SYNC_CHECK_SECONDS)

    try:
        while True:
            try:
                sync.sync()
            except avocado_client.AvocadoError:
                log.exception("Sync pass failed, will retry on next check")
            except OSError:
                log.exception("Could not write to the vault, will retry on next check")
            time.sleep(config.SYNC_CHECK_SECONDS)
    except KeyboardInterrupt:
        log.info("Stopped watching")


def _prompt(prompt: str, current: str = "", sensitive: bool = False) -> str | None:
    """Prompt user, showing the existing value as default. Returns None if skipped."""
    if current:
        display = _mask_value(current) if sensitive else current
        user_input = input(f"{prompt} [{display}]: ").strip()
    else:
        user_input = input(f"{prompt}: ").strip()

    if not user_input and current:
        return current
    return user_input or None


def _init_wizard() -> None:
    """Interactive setup wizard for first-time users."""
    from avocado_sync import avocado_client
    from avocado_sync.config import ENV_PATH, save_to_env
    from avocado_sync.settings import Settings

    settings = Settings()

    print()
    print("  Welcome to avocado-sync")
    print("  " + "=" * 48)
    print()
    print("  avocado-sync copies your Readavocado highlights into")
    print("  your Obsidian vault, one note per book.")
    print()
    print(f"  Config will be saved to: {ENV_PATH}")
    print()

    # -- Step 1: Vault --

    print("  " + "-" * 48)
    print("  Step 1 of 3: Obsidian vault")
    print("  " + "-" * 48)
    print()
    vault_path = _prompt(
        "  Vault path", os.environ.get("OBSIDIAN_VAULT_PATH", ""),
    )
    if not vault_path:
        print("\n  Error: A vault path is required to continue.")
        return
    vault_path = os.path.expanduser(vault_path)
    if not os.path.isdir(vault_path):
        print(f"\n  Error: {vault_path} is not a directory.")
        return
    save_to_env("OBSIDIAN_VAULT_PATH", vault_path)

    # -- Step 2: Token --

    print()
    print("  " + "-" * 48)
    print("  Step 2 of 3: Readavocado token")
    print("  " + "-" * 48)
    print()
    print("  Get your token from https://readavocado.com/user")
    print()
    current = settings.token if settings.has_token else ""
    token = _prompt("  Token", current, sensitive=True)
    if not token:
        print("\n  Error: A Readavocado token is required to continue.")
        return
    settings.set_token(token)

    print()
    print("  Verifying...")
    try:
        books = avocado_client.list_collections(token)
        print(f"  Connected! Found {len(books)} book{'s' if len(books) != 1 else ''}.")
    except avocado_client.AvocadoAuthError:
        print("  Warning: Readavocado rejected this token.")
    except avocado_client.AvocadoError as e:
        print(f"  Warning: could not verify token ({e})")

    # -- Step 3: Folder --

    print()
    print("  " + "-" * 48)
    print("  Step 3 of 3: Notes folder")
    print("  " + "-" * 48)
    print()
    folder = _prompt("  Folder inside the vault", settings.root_folder)
    folder = (folder or "").strip().strip("/")
    if folder and folder != settings.root_folder:
        settings.set_root_folder(folder)

    settings.save()

    print()
    print("  Done! Run 'avocado-sync' to pull your highlights,")
    print("  or 'avocado-sync --watch' to keep them in sync.")
    print()


def main():
    if "--help" in sys.argv or "-h" in sys.argv:
        print(_HELP)
        return

    if "--version" in sys.argv or "-V" in sys.argv:
        print(f"avocado-sync {_VERSION}")
        return

    if "--init" in sys.argv:
        _init_wizard()
        return

    if "--set-token" in sys.argv:
        value = _flag_value("--set-token")
        if value is not None:
            _set_token(value)
        return

    if "--set-folder" in sys.argv:
        value = _flag_value("--set-folder")
        if value is not None:
            _set_folder(value)
        return

    if "--set-interval" in sys.argv:
        value = _flag_value("--set-interval")
        if value is not None:
            _set_interval(value)
        return

    if "--status" in sys.argv:
        _status()
        return

    from avocado_sync import config
    config.ensure_loaded()

    if "--watch" in sys.argv:
        _watch()
        return

    _sync_once()


if __name__ == "__main__":
    main()
