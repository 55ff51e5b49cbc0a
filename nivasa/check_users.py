"""
List every user, flag the ones without a username, and optionally backfill
them with ``User_<last 4 phone digits>``.

    python -m nivasa.check_users
    python -m nivasa.check_users --fix
"""
import argparse

from nivasa.db import Base, engine, SessionLocal
from nivasa.services.membership import backfill_usernames, users_report


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--fix", action="store_true", help="assign default usernames")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        report = users_report(db)
        print("All users in database:")
        for i, user in enumerate(report["users"], start=1):
            print(f"User {i}:")
            print(f"  - Username: {user.username}")
            print(f"  - Phone: {user.phone_number}")
            print(f"  - Role: {user.role}")
            print(f"  - Flat Number: {user.flat_number}")
            print(f"  - Apartment Code: {user.apartment_code}")

        missing = report["without_username"]
        if not missing:
            print("\nAll users have usernames")
            return

        print(f"\nFound {len(missing)} users without usernames:")
        for user in missing:
            print(f"  - Phone: {user.phone_number}, Role: {user.role}")

        if args.fix:
            for user in backfill_usernames(db):
                print(f"Updated user {user.phone_number} with username: {user.username}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
