#!/usr/bin/env python3
"""
Container startup script.
Runs migrations and creates the first organization if configured.
"""

import os
import subprocess


def run_command(cmd: list[str], description: str) -> bool:
    """Run a command and return success status."""
    print(f"\n=== {description} ===")
    try:
        subprocess.run(cmd, check=True)
        return True
    except subprocess.CalledProcessError as e:
        print(f"Warning: {description} failed with code {e.returncode}")
        return False


def main():
    print("\n" + "=" * 50)
    print("MemberHub Startup Script")
    print("=" * 50)

    run_command(["alembic", "upgrade", "head"], "Running database migrations")

    # Create the first organization if environment variables are set
    email = os.environ.get("ADMIN_EMAIL", "").strip()
    password = os.environ.get("ADMIN_PASSWORD", "").strip()
    short_name = os.environ.get("ORGANIZATION_SHORTNAME", "").strip()
    long_name = os.environ.get("ORGANIZATION_LONGNAME", "").strip()

    if email and password and short_name and long_name:
        result = subprocess.run([
            "python", "scripts/create_admin.py",
            "--email", email,
            "--password", password,
            "--short-name", short_name,
            "--long-name", long_name,
        ])
        # Don't fail if the administrator already exists
        if result.returncode != 0:
            print("Note: Administrator creation returned non-zero (may already exist)")
    else:
        print("\nSkipping administrator creation (ADMIN_EMAIL/PASSWORD/ORGANIZATION_* not set)")

    port = os.environ.get("PORT", "8000")
    print(f"\n=== Starting uvicorn on port {port} ===\n")

    os.execvp("uvicorn", [
        "uvicorn",
        "memberhub.main:app",
        "--host", "0.0.0.0",
        "--port", port
    ])


if __name__ == "__main__":
    main()
