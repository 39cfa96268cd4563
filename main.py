"""Storybuddy dev launcher. Starts the API server, optionally in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "3001")


def main():
    parser = argparse.ArgumentParser(description="Storybuddy dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--reload", action="store_true",
                        help="Restart the server when source files change")
    parser.add_argument("--migrate", action="store_true",
                        help="Migrate legacy chat histories before starting")
    args = parser.parse_args()

    if args.migrate:
        from storybuddy import storage
        storage.init_storage(args.data_dir or ROOT / "data")
        status = storage.check_migration_status()
        if status["needsMigration"]:
            result = storage.run_migration()
            print(f"Migrated {result['migratedSessions']} legacy histories "
                  f"into publication {result['publicationId']}")
        else:
            print("No legacy chat histories to migrate")

    # The server process resolves DATA_DIR itself
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    cmd = [sys.executable, "-m", "uvicorn", "storybuddy.app:app", "--host", HOST, "--port", PORT]
    if args.reload:
        cmd.append("--reload")

    print(f"Starting backend on http://localhost:{PORT} ...")
    proc = subprocess.Popen(cmd, cwd=ROOT, env=env)

    def shutdown(*_):
        print("\nShutting down...")
        proc.terminate()
        proc.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)
    proc.wait()


if __name__ == "__main__":
    main()
