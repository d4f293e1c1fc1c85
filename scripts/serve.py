"""Run the API locally with uvicorn.

Reads PORT (default 3000) from the environment / .env via the app settings.
"""

# ruff: noqa: I001
from __future__ import annotations

import uvicorn

from app.core.settings import get_settings


def main() -> None:
    settings = get_settings()
    print(f"Starting server on port {settings.port}")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
        # Logging is configured by app.core.logging; keep uvicorn from replacing it.
        log_config=None,
    )


if __name__ == "__main__":
    main()
