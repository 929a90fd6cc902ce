#!/usr/bin/env python3
"""Seed script for demo users.

Creates a handful of users in Supabase, each with the four default
private groups (Everyone, Family, Friends, Followers). Users whose phone
number is already registered are skipped.

Usage:
    python scripts/seed_users.py
    python scripts/seed_users.py --dry-run
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment before the settings module reads it
load_dotenv()

DEMO_USERS: list[tuple[str, str]] = [
    ("Sarah Chen", "+14155552671"),
    ("Michael Rodriguez", "+16175551234"),
    ("Emily Thompson", "+16175559876"),
    ("David Kim", "+14155557890"),
]


async def seed(dry_run: bool) -> int:
    """Create the demo users. Returns the number created."""
    from huddle.core.exceptions import ConflictError
    from huddle.core.identity_cache import IdentityCache
    from huddle.db.supabase import SupabaseStore
    from huddle.services.identity import IdentityService
    from huddle.services.resolver import ParticipantResolver

    store = SupabaseStore()
    cache = IdentityCache()
    identity = IdentityService(store, cache, ParticipantResolver(store, cache))

    created = 0
    for display_name, phone_number in DEMO_USERS:
        if dry_run:
            logger.info("[dry-run] Would create %s (%s)", display_name, phone_number)
            continue
        try:
            user = await identity.create_user(display_name, phone_number)
        except ConflictError:
            logger.info("Skipping %s: phone number already registered", display_name)
            continue
        logger.info(
            "Created %s as %s with groups %s",
            display_name,
            user.id,
            ", ".join(ref.group_name for ref in user.groups),
        )
        created += 1
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo users and their groups")
    parser.add_argument("--dry-run", action="store_true", help="Log what would be created")
    args = parser.parse_args()

    created = asyncio.run(seed(args.dry_run))
    logger.info("Seeding complete: %d users created", created)


if __name__ == "__main__":
    main()
