"""Utility script to add the routing and claim columns to ``notifications``."""

from __future__ import annotations

import argparse

from sproutify_dispatch.application.use_cases.notifications import load_dispatch_settings
from sproutify_dispatch.domain.exceptions import DispatchConfigurationError
from sproutify_dispatch.infrastructure.database import get_engine
from sproutify_dispatch.infrastructure.schema import upgrade_notifications_table


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the upgrade."""

    parser = argparse.ArgumentParser(
        description=(
            "Add the channel, scope, recipient, recipient_user_id, claim_token and "
            "claimed_at columns to the notifications table of DATABASE_URL."
        ),
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the ALTER TABLE statements without executing them.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Upgrade the notifications table in place."""

    args = parse_args(argv)

    try:
        load_dispatch_settings()
        statements = upgrade_notifications_table(get_engine(), dry_run=args.dry_run)
    except DispatchConfigurationError as exc:
        raise SystemExit(exc.message) from exc

    if not statements:
        print("The notifications table is already up to date.")
        return

    for statement in statements:
        print(f"{statement};")
    if not args.dry_run:
        print(f"Applied {len(statements)} statement(s).")


if __name__ == "__main__":
    main()
