"""
Dev bootstrap script — generate an admin token for local development.

Usage:
    python -m scripts.bootstrap_dev

This will:
  1. Generate a random admin token
  2. Print it ONCE, with the .env line to paste

The service keeps only the token's SHA-256 digest in memory.
"""

import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from shortener.auth.hashing import generate_admin_token


def main() -> None:
    raw_token, token_hash = generate_admin_token()

    # ── Print results ───────────────────────────────────────
    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  ADMIN_TOKEN={raw_token}")
    print(f"  SHA-256:    {token_hash[:16]}…")
    print()
    print("  ⚠  Copy this token into .env now — it will NEVER be shown again.")
    print("=" * 60)
    print()


if __name__ == "__main__":
    main()
