"""Container entrypoint for LaunchPilot.

ROLE=api (default) runs migrations and serves the FastAPI app with uvicorn;
ROLE=worker starts the RQ scan worker.
"""

import os
import subprocess
import sys


def run_migrations() -> bool:
    print("Running database migrations...")
    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        print(f"Migration failed: {e.stderr}")
        return False
    print(result.stdout)
    return True


def start_api() -> None:
    port = os.getenv("PORT", "8000")
    workers = os.getenv("API_WORKERS", "1")
    host = os.getenv("API_HOST", "0.0.0.0")

    print(f"Starting API server on {host}:{port} with {workers} worker(s)...")
    os.execvp(
        "uvicorn",
        ["uvicorn", "api.main:app", "--host", host, "--port", port, "--workers", workers],
    )


def start_worker() -> None:
    print("Starting scan worker...")
    os.execvp(sys.executable, [sys.executable, "-m", "worker.main"])


def main() -> None:
    role = os.getenv("ROLE", "api").lower()
    if role == "worker":
        start_worker()
        return

    if os.getenv("RUN_MIGRATIONS", "true").lower() == "true" and not run_migrations():
        sys.exit(1)
    start_api()


if __name__ == "__main__":
    main()
