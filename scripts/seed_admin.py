"""Create the first admin account in the local admin directory database."""

import argparse
import asyncio
import getpass
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from adminpanel.core.database import AsyncSessionLocal, init_db  # noqa: E402
from adminpanel.core.errors import ValidationError  # noqa: E402
from adminpanel.domain.admins.repository import SqlAdminRepository  # noqa: E402
from adminpanel.domain.admins.schemas import AdminCreate  # noqa: E402
from adminpanel.domain.admins.services import AdminDirectoryService  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed an admin account")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--first-name", default="", help="First name")
    parser.add_argument("--last-name", default="", help="Last name")
    return parser.parse_args()


async def seed_admin(email: str, first_name: str, last_name: str, password: str, confirm: str) -> None:
    await init_db()
    async with AsyncSessionLocal() as session:
        directory = AdminDirectoryService(SqlAdminRepository(session))
        if any(admin.email.lower() == email.lower() for admin in await directory.search(email)):
            print(f"Admin {email} already exists")
            return
        admin = await directory.create(
            AdminCreate(
                email=email,
                first_name=first_name,
                last_name=last_name,
                password=password,
                confirm_password=confirm,
            )
        )
        print(f"Created admin #{admin.id} <{admin.email}>")


if __name__ == "__main__":
    args = parse_args()
    password = getpass.getpass("Password: ")
    confirm = getpass.getpass("Confirm password: ")
    try:
        asyncio.run(seed_admin(args.email, args.first_name, args.last_name, password, confirm))
    except ValidationError as exc:
        sys.exit(str(exc))
