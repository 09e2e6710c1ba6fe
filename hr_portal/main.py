from __future__ import annotations

import argparse
import json
import logging
import sys

from .core.api_employment import EmploymentAPIError, api_employment
from .wizard.drafts import DraftCache, DraftCacheError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hr_portal", description="HR Portal employment wizard utilities")
    parser.add_argument("--list-drafts", metavar="USER", help="List the saved wizard drafts of a user")
    parser.add_argument(
        "--discard-draft",
        nargs=2,
        metavar=("USER", "RECORD_KEY"),
        help="Delete one saved wizard draft",
    )
    parser.add_argument(
        "--form-options",
        action="store_true",
        help="Fetch enumerations and the field policy from the backend",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.list_drafts:
            drafts = DraftCache().list_for_user(args.list_drafts)
            if not drafts:
                print(f"No drafts for {args.list_drafts}")
            for draft in drafts:
                print(f"{draft['record_key']}\t{draft['current_step']}\t{draft['updated_at']:%Y-%m-%d %H:%M}")
            return 0

        if args.discard_draft:
            user, record_key = args.discard_draft
            if DraftCache().discard(user, record_key):
                print(f"Discarded draft {record_key}")
                return 0
            print(f"No draft {record_key} for {user}", file=sys.stderr)
            return 1
    except DraftCacheError as exc:
        print(f"Draft store error: {exc}", file=sys.stderr)
        return 1

    if args.form_options:
        try:
            options = api_employment.form_options()
        except EmploymentAPIError as exc:
            print(f"Backend error: {exc}", file=sys.stderr)
            return 1
        print(json.dumps(options, indent=2))
        return 0

    parser.print_help()
    return 0
