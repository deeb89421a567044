"""Add or update a dashboard user in the JSON user directory.

Usage:
    python scripts/add_user.py ana --role rep --rep-name "ANA SOUZA"
"""

import argparse
import getpass
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from commercial_intel.action.dependencies import hash_password  # noqa: E402
from commercial_intel.analytics.access_policy import Role  # noqa: E402
from config.settings import settings  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("username")
    parser.add_argument("--role", required=True, choices=[r.value for r in Role])
    parser.add_argument("--display-name")
    parser.add_argument("--rep-name", help="name as it appears in the rep column")
    parser.add_argument("--file", default=settings.users_file)
    args = parser.parse_args()

    path = Path(args.file)
    data = json.loads(path.read_text(encoding="utf-8")) if path.exists() else {"users": []}
    users = [u for u in data.get("users", []) if u["username"].lower() != args.username.lower()]

    password = getpass.getpass(f"Password for {args.username}: ")
    users.append({
        "username": args.username,
        "password_hash": hash_password(password),
        "role": args.role,
        "display_name": args.display_name,
        "rep_name": args.rep_name,
    })
    data["users"] = users
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    print(f"Saved {args.username} ({args.role}) to {path}")


if __name__ == "__main__":
    main()
