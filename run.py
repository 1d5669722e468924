"""
Run the Agency Portal API with uvicorn.

Host and port default to those of API_BASE_URL, so the client core and the
server agree without extra configuration.

Usage:
    python run.py
    python run.py --reload    # Development mode with auto-reload
    python run.py --port 8080 # Custom port (point API_BASE_URL at it too)
"""
import argparse
from urllib.parse import urlsplit

import uvicorn

from portal.config.settings import settings


def main():
    configured = urlsplit(settings.api_base_url)

    parser = argparse.ArgumentParser(description="Run the Agency Portal API server")
    parser.add_argument("--host", default=configured.hostname or "127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=configured.port or 8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (ignored with --reload)"
    )
    args = parser.parse_args()

    print("Starting Agency Portal API server...")
    print(f"  Listening: http://{args.host}:{args.port}/api/v1")
    print(f"  MongoDB:   {settings.mongo_uri} / {settings.mongo_db}")
    print(f"  Environment: {settings.environment}")
    print()

    uvicorn.run(
        "portal.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1 if args.reload else args.workers
    )


if __name__ == "__main__":
    main()
