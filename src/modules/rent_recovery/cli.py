"""
Rent Recovery CLI
=================
Command-line access to the scanner and verifier.

Usage:
    python -m src.modules.rent_recovery.cli --scan <OWNER>
    python -m src.modules.rent_recovery.cli --scan <OWNER> --json
    python -m src.modules.rent_recovery.cli --verify <SIGNATURE> --expected 0.05

Read-only: no command signs or sends anything.
"""

import argparse
import asyncio
import json
import sys

from src.interface.services import build_services
from src.modules.rent_recovery.errors import ChainUnavailable, InvalidInput
from src.modules.rent_recovery.models import ScanResult, VerificationOutcome
from src.shared.system.logging import Logger


def print_scan(result: ScanResult) -> None:
    print("\n" + "=" * 60)
    print("SCAN RESULTS")
    print("=" * 60)
    print(f"Owner:                {result.owner_address}")
    print(f"Accounts Enumerated:  {result.accounts_enumerated}")
    print(f"Reclaimable:          {len(result)}")
    print(f"Total Recoverable:    {result.total_reclaimable:.6f} SOL")
    print(f"Partial:              {result.partial}")
    print("=" * 60)

    if result.summaries:
        print("\nReclaimable Accounts:")
        print("-" * 60)
        for i, summary in enumerate(result.summaries, 1):
            print(f"{i:3}. {summary.account_address}  {summary.reclaimable_amount:.6f} SOL  [{summary.token_identifier}]")

    if result.failed_accounts:
        print("\nNot Checked (retry later):")
        for address in result.failed_accounts:
            print(f"     {address}")


def print_outcome(outcome: VerificationOutcome) -> None:
    print("\n" + "=" * 60)
    print("VERIFICATION")
    print("=" * 60)
    print(f"Signature:   {outcome.signature_id}")
    print(f"Status:      {outcome.status.value}")
    print(f"Observed:    {outcome.observed_amount if outcome.observed_amount is not None else '-'}")
    print(f"Expected:    {outcome.expected_amount if outcome.expected_amount is not None else '-'}")
    print(f"Block Time:  {outcome.block_time.isoformat() if outcome.block_time else '-'}")
    print("=" * 60)


async def scan_command(args) -> int:
    services = build_services(with_ledger=False)
    try:
        result = await services.cache.get_or_scan(args.scan)
    finally:
        await services.aclose()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_scan(result)
    return 2 if result.partial else 0


async def verify_command(args) -> int:
    services = build_services(with_ledger=False)
    try:
        if services.verifier is None:
            Logger.error("[CLI] Set RECIPIENT_WALLET to verify payouts")
            return 1
        outcome = await services.verifier.verify(args.verify, args.expected)
    finally:
        await services.aclose()

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        print_outcome(outcome)
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="FreeSol rent recovery tools")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--scan", metavar="OWNER", help="Scan an owner for reclaimable rent")
    action.add_argument("--verify", metavar="SIGNATURE", help="Verify a payout transaction")
    parser.add_argument("--expected", type=float, default=None, help="Expected payout in SOL (advisory)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    return parser


def run(args) -> int:
    command = scan_command if args.scan else verify_command
    try:
        return asyncio.run(command(args))
    except InvalidInput as e:
        Logger.error(f"[CLI] {e}")
        return 1
    except ChainUnavailable as e:
        Logger.error(f"[CLI] {e} (retry later)")
        return 3


def main(argv=None) -> int:
    return run(create_parser().parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
