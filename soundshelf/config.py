"""Configuration constants and .env loading.

WHY: Centralizes every tunable value (service URL, HTTP timeouts, CORS
origins, download pacing, bind address) so deployments can override them
without touching code.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values read from the environment with sensible defaults. load_service_url()
gives a clear error when the download service location is missing.

RULES:
- All defaults can be overridden via environment variables
- No credentials or access codes are ever hardcoded here
- Timeouts are in seconds (float)
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Outbound HTTP
# ---------------------------------------------------------------------------

FETCH_TIMEOUT_S = float(os.getenv("SOUNDSHELF_FETCH_TIMEOUT_S", "60"))
CONNECT_TIMEOUT_S = float(os.getenv("SOUNDSHELF_CONNECT_TIMEOUT_S", "10"))

# ---------------------------------------------------------------------------
# HTTP service
# ---------------------------------------------------------------------------

CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("SOUNDSHELF_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
"""Origins allowed to call the service from a browser."""

CORS_ALLOW_HEADERS: list[str] = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
]

SERVER_HOST = os.getenv("SOUNDSHELF_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("SOUNDSHELF_PORT", "8000"))

# ---------------------------------------------------------------------------
# Download client
# ---------------------------------------------------------------------------

DOWNLOAD_DELAY_S = float(os.getenv("SOUNDSHELF_DOWNLOAD_DELAY_S", "1.0"))
"""Pause between tracks when downloading a whole album."""


def load_service_url() -> str:
    """Load the base URL of the download-with-metadata service.

    RULES:
    - Reads SOUNDSHELF_SERVICE_URL from the environment
    - Trailing slashes are stripped
    - Raises ValueError if the URL is missing or empty
    """
    url = os.getenv("SOUNDSHELF_SERVICE_URL", "").strip()
    if not url:
        raise ValueError(
            "Download service URL not configured. "
            "Add SOUNDSHELF_SERVICE_URL to the .env file or pass --service-url."
        )
    return url.rstrip("/")
