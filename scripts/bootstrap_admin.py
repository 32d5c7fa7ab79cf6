"""Create the admin application on an empty database and print its key."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from pushgate.db.session import session_scope
from pushgate.services.applications import ApplicationService
from pushgate.services.store import SubscriptionStore


def main() -> None:
    """Bootstrap the admin application."""

    try:
        with session_scope() as db:
            result = ApplicationService(SubscriptionStore(db)).create_admin()
        if not result.success:
            print(f"✗ Admin application not created: {result.message}")
            raise SystemExit(1)

        print("✓ Admin application created")
        print(f"  Id:  {result.data.id}")
        print(f"  Key: {result.data.key}")
        print("  Store this key now, it cannot be shown again.")

    except Exception as exc:  # pragma: no cover - CLI feedback
        print(f"✗ Error creating admin application: {exc}")
        raise


if __name__ == "__main__":
    main()
