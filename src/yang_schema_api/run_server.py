"""Executable entry point for launching the YANG Schema FastAPI application.

Process managers can import the stable ``app`` object from
``yang_schema_api.app``; this module exists so the server can also be started
with ``python -m yang_schema_api.run_server`` (or ``yang-schema serve``).

Environment Variables:
    PORT (int): Override listening port (default 8000).
    YANG_PARSER_CONFIG (str): ``key=value`` pairs for the parser configuration.
    YANG_MAX_CONTENT_BYTES (int): Request document size cap.

Example:
    $ python -m yang_schema_api.run_server
    $ PORT=9000 YANG_PARSER_CONFIG=enable_primary=false python -m yang_schema_api.run_server
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import uvicorn

from .app import MAX_CONTENT_BYTES, PARSER_CONFIG, app

logger = logging.getLogger(__name__)


def main(port: Optional[int] = None) -> None:
    """Launch the ASGI server with development-friendly defaults.

    Reads the ``PORT`` environment variable (default 8000) unless ``port`` is
    given. For production, start uvicorn explicitly to configure workers.
    """
    port = port or int(os.getenv("PORT", "8000"))
    logger.info(
        f"Starting YANG Schema API on port {port} "
        f"(config: {PARSER_CONFIG}, max content: {MAX_CONTENT_BYTES} bytes)"
    )
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
