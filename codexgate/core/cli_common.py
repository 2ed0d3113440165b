"""
CLI argument parsing utilities for Codexgate.

Usage:
    from .cli_common import create_gateway_parser

    parser = create_gateway_parser()
    args = parser.parse_args()
"""
import argparse


def add_directory_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add working directory arguments to parser.

    Args:
        parser: ArgumentParser to add arguments to.
    """
    parser.add_argument(
        "--workdir", "-d",
        type=str,
        default=None,
        help="Sandbox root for file tools and working directory for codex "
             "(default: ~/codex-work)"
    )


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add configuration file arguments to parser.

    Args:
        parser: ArgumentParser to add arguments to.
    """
    parser.add_argument(
        "--config", "-c",
        type=str,
        metavar="PATH",
        default=None,
        help="Path to gateway.yaml (default: config/gateway.yaml if present)"
    )


def add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    """
    Add logging arguments to parser.

    Args:
        parser: ArgumentParser to add arguments to.
    """
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides gateway.yaml)"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path (default: logs/codexgate.log)"
    )


def create_gateway_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the gateway entry point."""
    parser = argparse.ArgumentParser(
        prog="codexgate",
        description="Expose the codex CLI as JSON-RPC tools over stdio.",
    )
    add_directory_arguments(parser)
    add_config_arguments(parser)
    add_logging_arguments(parser)
    return parser
