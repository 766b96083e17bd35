"""NPC Dialogue — dev launcher. Serves the dialogue API with uvicorn."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "127.0.0.1")
PORT = os.getenv("PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="NPC Dialogue dev server")
    parser.add_argument("--database", type=Path, default=None,
                        help="Dialogue database JSON (default: built-in demo)")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=int(PORT))
    parser.add_argument("--reload", action="store_true",
                        help="Restart on code changes")
    args = parser.parse_args()

    # The app factory reads the database path from the environment so that
    # reloaded worker processes pick it up too.
    if args.database:
        os.environ["DIALOGUE_DATABASE"] = str(args.database.resolve())

    print(f"Starting dialogue API on http://{args.host}:{args.port}/api ...")
    uvicorn.run(
        "backend.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
