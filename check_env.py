#!/usr/bin/env python3
"""Helper script to check and create the .env file for Supabase and GPS configuration."""

from pathlib import Path
import os

SECRET_KEYS = ("FJ_SUPABASE_KEY", "FJ_GPS_PASSWORD")

TEMPLATE = """# Supabase Configuration (Required for database storage)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
FJ_SUPABASE_URL=https://your-project-id.supabase.co
FJ_SUPABASE_KEY=your-service-role-key-here

# API Configuration
FJ_API_PREFIX=/api
# FJ_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list
FJ_TIMEZONE=Europe/Stockholm

# Data Paths
FJ_DATA_ROOT=./data

# GPS51 fleet tracking
FJ_GPS_BASE_URL=https://api.gps51.com
FJ_GPS_USERNAME=
FJ_GPS_PASSWORD=

# OSRM Routing
FJ_OSRM_BASE_URL=https://router.project-osrm.org
"""


def _mask(line: str) -> str:
    name, sep, value = line.partition("=")
    if not sep or name.strip() not in SECRET_KEYS:
        return line
    value = value.strip()
    if len(value) > 20:
        return f"{name}={value[:20]}...{value[-10:]}"
    return f"{name}=***" if value else line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Fleet Journal Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        print("Creating template .env file...")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase and GPS credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for name in ("FJ_SUPABASE_URL", "FJ_SUPABASE_KEY", "FJ_GPS_USERNAME", "FJ_GPS_PASSWORD"):
        if os.getenv(name):
            print(f"✅ {name} set in environment")
        else:
            print(f"ℹ️  {name} not in environment (may still come from .env)")
    print()

    try:
        import sys
        sys.path.insert(0, str(project_root / "src"))
        from fleetjournal.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    checks = {
        "Supabase": bool(settings.supabase_url and settings.supabase_key),
        "GPS": bool(settings.gps_username and settings.gps_password),
        "OSRM": bool(settings.osrm_base_url),
    }
    for name, ok in checks.items():
        print(f"{'✅' if ok else '❌'} {name} {'configured' if ok else 'NOT configured'}")

    if not all(checks.values()):
        print()
        print("Troubleshooting:")
        print("1. Make sure .env file exists in project root")
        print("2. Make sure variables start with FJ_ prefix")
        print("3. Make sure there are no spaces around = sign")
        print("4. Restart backend after editing .env")


if __name__ == "__main__":
    main()
