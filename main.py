"""
FreeSol Backend - Unified CLI Entrypoint
========================================
Single entrypoint with subcommands.

    python main.py serve --port 3000
    python main.py scan <OWNER> [--json]
    python main.py verify <SIGNATURE> [--expected 0.05] [--json]
"""

import argparse
import sys

from config.settings import Settings


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="FreeSol",
        description="Solana rent recovery scanner and payout verifier"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=Settings.API_HOST)
    serve_parser.add_argument("--port", type=int, default=Settings.API_PORT)

    scan_parser = subparsers.add_parser("scan", help="Scan an owner for reclaimable rent")
    scan_parser.add_argument("owner")
    scan_parser.add_argument("--json", action="store_true")

    verify_parser = subparsers.add_parser("verify", help="Verify a payout transaction")
    verify_parser.add_argument("signature")
    verify_parser.add_argument("--expected", type=float, default=None)
    verify_parser.add_argument("--json", action="store_true")

    return parser


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        import uvicorn
        from src.interface.api_service import create_app

        uvicorn.run(create_app(), host=args.host, port=args.port)
        return 0

    if args.command in ("scan", "verify"):
        from src.modules.rent_recovery import cli

        cli_args = argparse.Namespace(
            scan=args.owner if args.command == "scan" else None,
            verify=args.signature if args.command == "verify" else None,
            expected=getattr(args, "expected", None),
            json=args.json,
        )
        return cli.run(cli_args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
