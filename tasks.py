"""Invoke tasks for DramBox application management."""

import sys

from invoke import task
from invoke.context import Context


@task
def start(ctx: Context, host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Start the DramBox FastAPI server.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable auto-reload for development
    """
    cmd = f"uv run drambox-server --host {host} --port {port}"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False, k: str = "") -> None:
    """Run the test suite (needs a MongoDB at TEST_MONGODB_URL).

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
        k: Only run tests matching this expression
    """
    cmd = "uv run pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=drambox --cov-report=term-missing"
    if k:
        cmd += f" -k '{k}'"
    ctx.run(cmd, pty=True)


@task(name="init-db")
def init_db(ctx: Context) -> None:
    """Create collections and indexes."""
    print("Initializing database...")
    ctx.run("uv run python -c 'import asyncio; from drambox.database import init_db; asyncio.run(init_db())'")
    print("Database initialized successfully")


@task
def sweep(ctx: Context, user: str = "") -> None:
    """Attach orphaned pours to sessions.

    Args:
        ctx: Invoke context
        user: Only sweep pours of the user with this email
    """
    cmd = "uv run drambox-jobs sweep"
    if user:
        cmd += f" --user {user}"
    ctx.run(cmd, warn=True)


@task
def ratings(ctx: Context, stats: bool = False) -> None:
    """Recompute community ratings, or only show coverage with --stats."""
    ctx.run(f"uv run drambox-jobs {'stats' if stats else 'ratings'}")


@task(name="add-user")
def add_user(ctx: Context, username: str, email: str, admin: bool = False) -> None:
    """Add a user; the password is prompted for.

    Args:
        ctx: Invoke context
        username: Username for the new user
        email: Email address used to log in
        admin: Make the user an admin
    """
    cmd = f"uv run drambox-user add {username} --email {email}"
    if admin:
        cmd += " --admin"
    ctx.run(cmd, pty=True)


@task
def clean(ctx: Context) -> None:
    """Clean up temporary files."""
    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    print("Cleanup complete")
