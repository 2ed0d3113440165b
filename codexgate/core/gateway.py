"""
Codexgate entry point.

Loads settings, configures logging, and serves JSON-RPC over stdio until
stdin closes.

Usage:
    python -m codexgate.core --workdir ~/codex-work
    codexgate --workdir ~/codex-work --log-level DEBUG
"""
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..config import ConfigNotFoundError, ConfigValidationError, GatewayConfigLoader
from .cli_common import create_gateway_parser
from .logging_config import setup_gateway_logging

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = create_gateway_parser().parse_args(argv)

    try:
        loader = GatewayConfigLoader(config_path=Path(args.config) if args.config else None)
        loader.apply_cli_overrides(workdir=args.workdir, log_level=args.log_level)
        settings = loader.load()
    except (ConfigNotFoundError, ConfigValidationError) as e:
        print("\n\033[91m✗ Configuration Error\033[0m\n", file=sys.stderr)
        print(f"{e}\n", file=sys.stderr)
        return 1

    setup_gateway_logging(
        log_level=settings.log_level,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    # Imported late so logging is configured before the services load
    from ..services.gateway_app import create_gateway

    server = create_gateway(settings)
    logger.info(f"codexgate started (workdir: {settings.workdir})")

    try:
        asyncio.run(server.serve_stdio())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
