#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from repo root or backend/:
  python scripts/check_backend.py
"""
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        errors.append("backend/.env missing. Create it and set ZENOTI_API_KEY.")
    else:
        print("OK  .env exists")

    # 2) Credentials and provider directory
    try:
        from slot_discovery.config import settings
        from slot_discovery.services.providers import load_provider_directory

        if settings.zenoti_api_key:
            print("OK  ZENOTI_API_KEY set")
        else:
            errors.append("ZENOTI_API_KEY is empty; discovery will fail with a configuration error.")
            print("FAIL ZENOTI_API_KEY")
        if settings.providers_file:
            directory = load_provider_directory(settings.providers_file)
            print(f"OK  Providers file ({len(directory)} providers)")
        else:
            print("--  PROVIDERS_FILE unset; every center gets the default priority")
    except Exception as e:
        errors.append(f"Settings: {e}")
        print("FAIL Settings:", e)

    # 3) App import (catches missing deps, bad imports)
    try:
        from slot_discovery.main import app  # noqa: F401
        print("OK  App import (slot_discovery.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)
        return 1

    # 4) Port 8000
    try:
        import socket
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 8000))
        print("OK  Port 8000 is free")
    except OSError:
        errors.append("Port 8000 is in use. Stop the other process or use another port (e.g. --port 8001).")
        print("FAIL Port 8000 is in use")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: uvicorn slot_discovery.main:app --reload --port 8000")
    return 0


if __name__ == "__main__":
    sys.exit(main())
