"""Runtime configuration read from the environment."""

import os

from dotenv import load_dotenv

load_dotenv()

SITE_NAME = "Aitoonic"
DEFAULT_SITE_URL = "https://aitoonic.com"
DEFAULT_DESCRIPTION = "Discover the best AI tools and agents for your needs"
DEFAULT_IMAGE = "https://aitoonic.com/og-image.jpg"
TOOL_PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1676277791608-ac54783d753b"
AGENT_PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1677442136019-21780ecad995"

COLLECTIONS = ("tools", "agents", "categories")


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {value!r}")


def base_path() -> str:
    """Path prefix for subdirectory deployment (no trailing slash)."""
    return os.getenv("BASE_PATH", "").rstrip("/")


def site_url() -> str:
    return os.getenv("SITE_URL", DEFAULT_SITE_URL).rstrip("/")


def tools_page_size() -> int:
    return _int_env("AITOONIC_TOOLS_PAGE_SIZE", 15)


def agents_page_size() -> int:
    return _int_env("AITOONIC_AGENTS_PAGE_SIZE", 12)


def listing_cache_size() -> int:
    """How many per-session listing controllers the web process keeps."""
    return _int_env("AITOONIC_LISTING_CACHE_SIZE", 1000)


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")


def web_port() -> int:
    return _int_env("WEB_PORT", 8000)
