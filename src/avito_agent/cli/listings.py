from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from avito_agent.config import AgentConfig, load_env
from avito_agent.errors import PersistFailure
from avito_agent.repositories import RedisStore, forget_listing, load_listing


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect harvested listings stored in Redis")
    parser.add_argument("--env-file", help="Read settings from this .env file")
    sub = parser.add_subparsers(dest="command", required=True)
    show = sub.add_parser("show", help="Print a stored listing as JSON")
    show.add_argument("id")
    forget = sub.add_parser("forget", help="Delete a stored listing so it is harvested again")
    forget.add_argument("id")
    args = parser.parse_args(argv)

    load_env(args.env_file)
    store = RedisStore.from_config(AgentConfig().redis)
    try:
        if args.command == "show":
            listing = load_listing(store, args.id)
            if listing is None:
                print(f"No listing stored under {args.id}", file=sys.stderr)
                return 1
            print(listing.model_dump_json(indent=2))
        else:
            forget_listing(store, args.id)
            print(f"Deleted {args.id}")
    except PersistFailure as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
