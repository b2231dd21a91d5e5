import logging
import os
import re
import sys
from pathlib import Path

from dotenv import load_dotenv

# Config directory: respects XDG_CONFIG_HOME, overridable with AVOCADO_CONFIG_DIR
CONFIG_DIR = Path(
    os.environ.get("AVOCADO_CONFIG_DIR", "")
    or (
        Path(os.environ.get("XDG_CONFIG_HOME", "") or Path.home() / ".config")
        / "avocado-sync"
    )
)
CONFIG_DIR.mkdir(parents=True, exist_ok=True)

# .env file: prefer the config dir, fall back to CWD (for dev installs)
ENV_PATH = CONFIG_DIR / ".env"
if not ENV_PATH.exists() and (Path.cwd() / ".env").exists():
    ENV_PATH = Path.cwd() / ".env"

load_dotenv(ENV_PATH)


def _require(var: str) -> str:
    value = os.environ.get(var, "").strip()
    if not value or value.startswith("your_"):
        if not ENV_PATH.exists():
            print("Error: No config found. Run 'avocado-sync --init' to get started.")
        else:
            print(f"Error: {var} is not set. Fill it in {ENV_PATH}")
        sys.exit(1)
    return value


def save_to_env(key: str, value: str) -> None:
    """Update a single key in the .env file, preserving all other content."""
    if ENV_PATH.exists():
        text = ENV_PATH.read_text()
    else:
        text = ""

    pattern = rf"^{re.escape(key)}=.*$"
    replacement = f"{key}={value}"

    if re.search(pattern, text, flags=re.MULTILINE):
        text = re.sub(pattern, replacement, text, flags=re.MULTILINE)
    else:
        text = text.rstrip("\n") + f"\n{replacement}\n"

    ENV_PATH.write_text(text)
    os.chmod(ENV_PATH, 0o600)
    os.environ[key] = value


# Required for syncing — loaded lazily via ensure_loaded()
OBSIDIAN_VAULT_PATH: str = os.environ.get("OBSIDIAN_VAULT_PATH", "").strip()

AVOCADO_API_URL: str = os.environ.get(
    "AVOCADO_API_URL", "https://plum.readavocado.com/api/"
).strip()
if not AVOCADO_API_URL.endswith("/"):
    AVOCADO_API_URL += "/"

# How often --watch wakes up to check the sync interval gate
SYNC_CHECK_SECONDS: int = int(os.environ.get("SYNC_CHECK_SECONDS", "300"))

HTTP_TIMEOUT: int = int(os.environ.get("HTTP_TIMEOUT", "30"))
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").strip().upper()


_loaded = False


def ensure_loaded() -> None:
    """Validate required config vars. Call at the start of main()."""
    global _loaded, OBSIDIAN_VAULT_PATH
    if _loaded:
        return
    _loaded = True
    OBSIDIAN_VAULT_PATH = _require("OBSIDIAN_VAULT_PATH")


def setup_logging() -> None:
    """Configure logging for avocado-sync. Call once at each entry point."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
