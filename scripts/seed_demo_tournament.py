"""
Seed a league with eight demo members and a finished single-elimination bracket.

Usage: python scripts/seed_demo_tournament.py <league_id> <owner_or_admin_uid>
"""

from __future__ import annotations

import os
import sys

import firebase_admin
from firebase_admin import credentials, firestore

from clubleague.errors import AppError
from clubleague.tournament.demo import seed_demo_tournament


def initialize_app() -> firebase_admin.App:
    """Initializes Firebase from KEY_PATH, or application default credentials."""
    key_path = os.environ.get("KEY_PATH")
    cred = (
        credentials.Certificate(key_path)
        if key_path
        else credentials.ApplicationDefault()
    )
    return firebase_admin.initialize_app(cred)


def main() -> None:
    """Main entry point for the seeding script."""
    if len(sys.argv) != 3:
        print(__doc__.strip())
        sys.exit(2)
    league_id, user_id = sys.argv[1], sys.argv[2]

    initialize_app()
    try:
        matches = seed_demo_tournament(firestore.client(), league_id, user_id)
    except AppError as e:
        print(f"Error: {e.message}")
        sys.exit(1)
    print(f"Seeded league {league_id} with {len(matches)} completed matches.")


if __name__ == "__main__":
    main()
