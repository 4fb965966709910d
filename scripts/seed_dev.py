#!/usr/bin/env python
"""Seed development database with demo users, tracks and grants.

Constraints:
- Refuses to run in staging or prod (AUDIOSHARE_ENV check)
- Idempotent: does nothing if the demo users already exist
- Never runs automatically (manual invocation only)

Demo data:
- users admin (no display name), user, guest, ghost; all with SEED_PASSWORD
- admin owns "test music" and "best music", user owns "bad music" and
  "private music"
- test music -> user, guest; best music -> user; bad music -> admin, guest

Usage:
    cd python && DATABASE_URL=... MEDIA_DIR=... python ../scripts/seed_dev.py
"""

import io
import os
import sys

DEMO_USERS = [
    ("admin", ""),
    ("user", "Lorem Ipsum"),
    ("guest", "Uninvited T"),
    ("ghost", "Dutchman Flying"),
]

# (description, duration seconds, owner login, file name)
DEMO_TRACKS = [
    ("test music", 4 * 60, "admin", "sample.ogg"),
    ("best music", 14 * 60, "admin", "rock.ogg"),
    ("bad music", 60, "user", "pop.ogg"),
    ("private music", 10 * 60, "user", "never_to_share.ogg"),
]

# (track description, grantee login)
DEMO_GRANTS = [
    ("test music", "user"),
    ("test music", "guest"),
    ("best music", "user"),
    ("bad music", "admin"),
    ("bad music", "guest"),
]


def main():
    # 1. Environment check (hard fail in staging/prod)
    audioshare_env = os.getenv("AUDIOSHARE_ENV", "local")
    if audioshare_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in AUDIOSHARE_ENV={audioshare_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    if not os.getenv("DATABASE_URL"):
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    password = os.getenv("SEED_PASSWORD", "password")

    from sqlalchemy import text

    from audioshare.config import get_settings
    from audioshare.db.session import get_session_factory
    from audioshare.storage.client import get_blob_store
    from audioshare.stores import catalog, grants, users

    blob_store = get_blob_store(get_settings())
    db = get_session_factory()()

    try:
        # 3. Idempotency check
        existing = db.execute(
            text("SELECT id FROM users WHERE login = :login"), {"login": DEMO_USERS[0][0]}
        ).scalar()
        if existing is not None:
            print("Demo data already present, nothing to do")
            return

        # 4. Users, tracks (with placeholder content), grants
        user_ids = {
            login: users.create_user(db, login, password, name) for login, name in DEMO_USERS
        }

        track_ids = {}
        for description, seconds, owner, filename in DEMO_TRACKS:
            handle = blob_store.put(io.BytesIO(f"demo:{filename}".encode()), filename)
            track_ids[description] = catalog.create_track(
                db, user_ids[owner], handle, description, seconds
            )

        for description, grantee in DEMO_GRANTS:
            grants.add_grant(db, track_ids[description], user_ids[grantee])

        print(
            f"Seeded {len(user_ids)} users, {len(track_ids)} tracks, {len(DEMO_GRANTS)} grants"
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
