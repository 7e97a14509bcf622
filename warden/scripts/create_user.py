"""
Create an account (e.g. the first superadmin). Run from project root:
  python -m warden.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m warden.scripts.create_user root@example.com your-secure-password Ada Lovelace superadmin
"""
import argparse
import logging
import sys

from warden.core.config import get_settings
from warden.core.database import SessionLocal
from warden.core.errors import WardenError
from warden.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from warden.core.tokens import TokenEngine
from warden.models.enums import Role
from warden.services.accounts import AccountService
from warden.services.mailer import PasswordResetMailer
from warden.services.repository import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Warden account (bypasses the HTTP API).")
    parser.add_argument("email", help="Account email")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("first_name", help="First name")
    parser.add_argument("last_name", help="Last name")
    parser.add_argument("role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role])
    args = parser.parse_args(argv)

    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        service = AccountService.from_settings(
            settings,
            UserRepository(db),
            TokenEngine.from_settings(settings),
            PasswordResetMailer(settings),
        )
        user = service.register(
            args.email, args.password, args.first_name, args.last_name, Role(args.role)
        )
    except WardenError as e:
        print(f"Could not create account: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.username}' ({user.email}) with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
