"""DramBox server launcher.

Usage:
    drambox-server [--host HOST] [--port PORT] [--reload]
"""

import argparse
import sys

import uvicorn

from drambox.config import settings


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run the DramBox API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                        Start on the configured host and port
  %(prog)s --port 8080            Start on port 8080
  %(prog)s --reload               Start with auto-reload for development
        """,
    )
    parser.add_argument("--host", default=None, help=f"Host to bind to (default: {settings.host})")
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help=f"Port to bind to (default: {settings.port})",
    )
    parser.add_argument(
        "--reload", "-r",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    print(f"Starting DramBox server on http://{args.host or settings.host}:{args.port or settings.port}")
    try:
        uvicorn.run(
            "drambox.main:app",
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload,
            workers=None if args.reload else settings.workers,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        print("\nServer stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
