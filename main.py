#!/usr/bin/env python3
"""
Barlink WhatsApp relay - OTP verification and notifications over WhatsApp.

Main entry point for the application.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

import uvicorn
from pydantic import ValidationError

from relay.core.exceptions import ConfigurationError
from relay.core.logger import setup_structured_logging
from relay.core.settings import RelaySettings, get_settings
from relay_web.app import create_app


def load_settings() -> Optional[RelaySettings]:
    """Load settings, printing validation problems instead of a traceback."""
    try:
        return get_settings()
    except ValidationError as e:
        print("❌ Invalid configuration:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"]) or "settings"
            print(f"  - {field}: {error['msg']}", file=sys.stderr)
        return None


async def run_server(settings: RelaySettings, host: str, port: int) -> None:
    """
    Serve the relay until SIGINT/SIGTERM.

    uvicorn installs the signal handlers; the application lifespan then
    destroys the WhatsApp session before the process exits.
    """
    logger = logging.getLogger(__name__)
    app = create_app(settings)

    config_uvicorn = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
    server = uvicorn.Server(config_uvicorn)

    logger.info(f"🚀 WhatsApp relay listening on http://{host}:{port} (env: {settings.env})")
    await server.serve()
    logger.info("WhatsApp relay stopped")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Barlink WhatsApp OTP and notification relay")
    parser.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: PORT or 3001)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    args = parser.parse_args()

    settings = load_settings()
    if settings is None:
        sys.exit(1)

    # Setup structured logging
    setup_structured_logging(
        args.log_level or settings.log_level,
        json_format=settings.log_json,
        log_dir=settings.log_dir,
    )
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(run_server(settings, args.host or settings.host, args.port or settings.port))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
