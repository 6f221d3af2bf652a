"""Mint a bearer token for local development.

Usage:
    python create_token.py USER_ID [EMAIL] [NAME] [--staff]
"""
import sys

from accounting_portal_api.app.core.security import create_access_token


def main(argv: list) -> int:
    staff = "--staff" in argv
    args = [a for a in argv if a != "--staff"]
    if not args:
        print(__doc__.strip())
        return 1
    claims = {"sub": args[0], "role": "staff" if staff else "client"}
    if len(args) > 1:
        claims["email"] = args[1]
    if len(args) > 2:
        claims["name"] = " ".join(args[2:])
    # Valid for one year.
    print(create_access_token(claims, expires_delta=365 * 24 * 60 * 60))
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
