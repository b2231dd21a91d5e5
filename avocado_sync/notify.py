"""Desktop notifications for sync events (macOS), mirrored to the log."""

import logging
import platform
import subprocess

log = logging.getLogger(__name__)

_TITLE = "Avocado"


def send(title: str, message: str) -> None:
    """Send a macOS notification. Silently no-ops on other platforms."""
    if platform.system() != "Darwin":
        log.debug("Notifications only supported on macOS, skipping")
        return

    try:
        subprocess.run(
            ["terminal-notifier", "-title", title, "-message", message,
             "-group", "avocado-sync"],
            capture_output=True, timeout=10,
        )
    except FileNotFoundError:
        # Fallback to osascript if terminal-notifier not installed
        script = (
            f'display notification "{_escape(message)}" '
            f'with title "{_escape(title)}"'
        )
        try:
            subprocess.run(
                ["osascript", "-e", script],
                capture_output=True, timeout=10,
            )
        except Exception as e:
            log.debug("Failed to send notification: %s", e)
    except Exception as e:
        log.debug("Failed to send notification: %s", e)


def sync_started() -> None:
    log.info("Avocado: Fetching new highlights")
    send(_TITLE, "Fetching new highlights")


def invalid_token() -> None:
    log.error("Avocado: Invalid token")
    send(_TITLE, "Invalid token")


def sync_failed(reason: str) -> None:
    log.error("Avocado: Sync failed (%s)", reason)
    send(_TITLE, "Sync failed, check your connection and token")


def notify_summary(created: int, updated: int) -> None:
    """Send a summary notification if anything happened."""
    parts = []
    if created:
        parts.append(f"{created} new book{'s' if created != 1 else ''}")
    if updated:
        parts.append(f"{updated} note{'s' if updated != 1 else ''} updated")

    if not parts:
        return

    send(_TITLE, ", ".join(parts))


def _escape(s: str) -> str:
    """Escape for AppleScript string."""
    return s.replace("\\", "\\\\").replace('"', '\\"')
