"""Print a bcrypt hash for ADMIN_PASSWORD_HASH.

Usage:
    python scripts/hash_admin_password.py            # prompts for the password
    python scripts/hash_admin_password.py --rounds 13
"""

import argparse
import getpass
import sys

from auth.passwords import hash_password


def main():
    parser = argparse.ArgumentParser(description="Generate ADMIN_PASSWORD_HASH")
    parser.add_argument(
        "--rounds",
        type=int,
        default=12,
        help="bcrypt cost factor (default: 12)",
    )
    args = parser.parse_args()

    password = getpass.getpass("Admin password: ")
    confirm = getpass.getpass("Confirm password: ")
    if not password:
        print("Password must not be empty", file=sys.stderr)
        sys.exit(1)
    if password != confirm:
        print("Passwords do not match", file=sys.stderr)
        sys.exit(1)

    print(f"ADMIN_PASSWORD_HASH={hash_password(password, rounds=args.rounds)}")


if __name__ == "__main__":
    main()
