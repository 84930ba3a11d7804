"""
Command line launcher.

Usage:
    python -m diffviewer /path/to/repos
    python -m diffviewer /path/to/repos --port 3001 --reload
    SOURCE_DIR=/path/to/repos python -m diffviewer
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import uvicorn

from diffviewer.config.settings import Settings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="diffviewer", description="Git diff viewer server")
    parser.add_argument("source_dir", nargs="?", help="Directory containing git repositories")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args(argv)

    if args.source_dir:
        os.environ["SOURCE_DIR"] = args.source_dir

    settings = Settings()
    if settings.source_dir is None:
        print("Error: source directory is required", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    if not Path(settings.source_dir).is_dir():
        print(f"Error: directory '{settings.source_dir}' does not exist", file=sys.stderr)
        return 1

    print("Starting Git Diff Viewer Server...")
    print(f"Source Directory: {settings.source_dir}")

    # the factory re-reads settings from the environment, including in reload workers
    uvicorn.run(
        "diffviewer.main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
