"""User administration script for DramBox.

Commands:
    add       Add a new user
    list      List all users
    disable   Disable a user account
    enable    Enable a user account
    remove    Remove a user account
    passwd    Change a user's password
"""

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from getpass import getpass
from typing import Optional

from drambox.database import close_db, init_db
from drambox.models.user import User
from drambox.services.auth import get_password_hash


async def _find_user(username: str) -> User:
    user = await User.find_one(User.username == username)
    if not user:
        print(f"Error: User '{username}' not found.")
        sys.exit(1)
    return user


async def add_user(
    username: str,
    password: str,
    email: str,
    is_admin: bool = False,
    full_name: Optional[str] = None,
) -> None:
    """Add a new user."""
    email = email.lower()
    if await User.find_one(User.username == username):
        print(f"Error: User '{username}' already exists.")
        sys.exit(1)

    if await User.find_one(User.email == email):
        print(f"Error: Email '{email}' already in use.")
        sys.exit(1)

    user = User(
        username=username,
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash(password),
        is_superuser=is_admin,
        is_active=True,
    )
    await user.insert()

    role = "admin" if is_admin else "user"
    print(f"User '{username}' created successfully as {role}.")


async def list_users() -> None:
    """List all users."""
    users = await User.find_all().sort(+User.username).to_list()

    if not users:
        print("No users found.")
        return

    print(f"{'Username':<20} {'Email':<30} {'Admin':<6} {'Active':<6} {'Last Login':<20}")
    print("-" * 90)

    for user in users:
        last_login = user.last_login.strftime("%Y-%m-%d %H:%M") if user.last_login else "Never"
        admin = "Yes" if user.is_admin else "No"
        active = "Yes" if user.is_active else "No"
        print(f"{user.username:<20} {user.email:<30} {admin:<6} {active:<6} {last_login:<20}")


async def set_active(username: str, active: bool) -> None:
    """Enable or disable a user account."""
    user = await _find_user(username)
    label = "enabled" if active else "disabled"

    if user.is_active == active:
        print(f"User '{username}' is already {'active' if active else 'disabled'}.")
        return

    user.is_active = active
    user.updated_at = datetime.now(timezone.utc)
    await user.save_changes()
    print(f"User '{username}' has been {label}.")


async def remove_user(username: str, force: bool = False) -> None:
    """Remove a user account. Their bottles and pours are kept."""
    user = await _find_user(username)

    if not force:
        confirm = input(f"Are you sure you want to remove user '{username}'? [y/N]: ")
        if confirm.lower() != "y":
            print("Aborted.")
            return

    await user.delete()
    print(f"User '{username}' has been removed.")


async def change_password(username: str, password: str) -> None:
    """Change a user's password."""
    user = await _find_user(username)
    user.hashed_password = get_password_hash(password)
    user.updated_at = datetime.now(timezone.utc)
    await user.save_changes()
    print(f"Password for user '{username}' has been updated.")


def get_password_interactive(confirm: bool = True) -> str:
    """Get password interactively from user."""
    password = getpass("Password: ")
    if not password:
        print("Error: Password cannot be empty.")
        sys.exit(1)

    if confirm:
        password2 = getpass("Confirm password: ")
        if password != password2:
            print("Error: Passwords do not match.")
            sys.exit(1)

    return password


async def _run(command) -> None:
    await init_db()
    try:
        await command
    finally:
        await close_db()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="User administration for DramBox",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_parser = subparsers.add_parser("add", help="Add a new user")
    add_parser.add_argument("username", help="Username for the new user")
    add_parser.add_argument("--email", "-e", required=True, help="Email address (used to log in)")
    add_parser.add_argument("--name", "-n", help="Full name")
    add_parser.add_argument("--admin", "-a", action="store_true", help="Make user an admin")
    add_parser.add_argument("--password", "-p", help="Password (will prompt if not provided)")

    subparsers.add_parser("list", help="List all users")

    disable_parser = subparsers.add_parser("disable", help="Disable a user account")
    disable_parser.add_argument("username", help="Username to disable")

    enable_parser = subparsers.add_parser("enable", help="Enable a user account")
    enable_parser.add_argument("username", help="Username to enable")

    remove_parser = subparsers.add_parser("remove", help="Remove a user account")
    remove_parser.add_argument("username", help="Username to remove")
    remove_parser.add_argument("--force", "-f", action="store_true", help="Skip confirmation")

    passwd_parser = subparsers.add_parser("passwd", help="Change a user's password")
    passwd_parser.add_argument("username", help="Username to change password for")
    passwd_parser.add_argument("--password", "-p", help="New password (will prompt if not provided)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "add":
            password = args.password if args.password else get_password_interactive()
            asyncio.run(_run(add_user(args.username, password, args.email, args.admin, args.name)))

        elif args.command == "list":
            asyncio.run(_run(list_users()))

        elif args.command == "disable":
            asyncio.run(_run(set_active(args.username, False)))

        elif args.command == "enable":
            asyncio.run(_run(set_active(args.username, True)))

        elif args.command == "remove":
            asyncio.run(_run(remove_user(args.username, args.force)))

        elif args.command == "passwd":
            password = args.password if args.password else get_password_interactive()
            asyncio.run(_run(change_password(args.username, password)))

    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
