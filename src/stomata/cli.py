"""Command-line entry point for stomata.

Usage:
    stomata                       # system dashboard
    stomata --interval 500        # refresh every 500 ms
    stomata web3                  # address validation / portfolio tool
    stomata -i                    # feature selection menu
    stomata validate 0xabc...     # validate one address and exit
    stomata --dump-config         # print the default config
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from stomata import __version__
from stomata.config import ConfigError, DashboardConfig, dump_default_config, load_config
from stomata.launcher import run_feature, run_interactive
from stomata.navigation import Feature
from stomata.wallet.address import AddressValidator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stomata",
        description="Live system telemetry dashboard with web3 address tools.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-i", "--interactive", action="store_true",
        help="Show the feature selection menu; quitting a feature returns to it",
    )
    parser.add_argument(
        "-t", "--interval", type=int, default=None,
        help="Refresh interval in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "--clamp-quantile", type=float, default=None,
        help="Quantile used to clamp spikes in network history (default: 0.95)",
    )
    parser.add_argument(
        "--rpc-url", default=None,
        help="JSON-RPC endpoint for portfolio lookups",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a TOML config file")
    parser.add_argument(
        "--dump-config", action="store_true",
        help="Print the default configuration as TOML and exit",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to this file")
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for --log-file (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("core", help="System dashboard (default)")
    sub.add_parser("web3", help="Address validation and portfolio tool")
    validate = sub.add_parser("validate", help="Validate an EVM address and exit")
    validate.add_argument("address")
    return parser


def resolve_config(args: argparse.Namespace) -> DashboardConfig:
    """Merge config file values with command-line overrides.

    Raises:
        ConfigError: If the file or any resulting value is invalid.
    """
    settings = load_config(args.config)
    if args.interval is not None:
        settings["interval_ms"] = args.interval
    if args.clamp_quantile is not None:
        settings["clamp_quantile"] = args.clamp_quantile
    if args.rpc_url is not None:
        settings["web3"] = {**settings["web3"], "rpc_url": args.rpc_url}
    return DashboardConfig.from_dict(settings)


def configure_logging(log_file: Path | None, level: str) -> None:
    """Log to a file only; the terminal belongs to the UI."""
    if log_file is None:
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.dump_config:
        print(dump_default_config(), end="")
        return 0

    configure_logging(args.log_file, args.log_level)

    if args.command == "validate":
        result = AddressValidator.validate(args.address)
        print(result.describe())
        return 0 if result.is_valid else 1

    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(f"stomata: {e}", file=sys.stderr)
        return 1

    if args.interactive:
        run_interactive(config)
    else:
        run_feature(Feature.WEB3 if args.command == "web3" else Feature.CORE, config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
