"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
Point ``RUMO_URL`` at ``http://127.0.0.1:8088/`` and use ``MOCK_API_KEY``
as ``RUMO_API_KEY`` to run against ``python mock_server.py``.
"""

import os

# ---------------------------------------------------------------------------
# Rumo API connection
# ---------------------------------------------------------------------------

RUMO_URL: str = os.getenv("RUMO_URL", "https://beta.api.rumo.co/")
RUMO_API_KEY: str = os.getenv("RUMO_API_KEY", "")

# Source (tenant) name.  The first content submission creates it.
RUMO_SOURCE: str = os.getenv("RUMO_SOURCE", "")

# Default per-request timeout.  Each call can override it.
RUMO_TIMEOUT_SECONDS: float = float(os.getenv("RUMO_TIMEOUT_SECONDS", "10"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Local mock server
# ---------------------------------------------------------------------------

MOCK_HTTP_HOST: str = os.getenv("MOCK_HTTP_HOST", "127.0.0.1")
MOCK_HTTP_PORT: int = int(os.getenv("MOCK_HTTP_PORT", "8088"))
MOCK_API_KEY: str = os.getenv("MOCK_API_KEY", "local-dev-key")
