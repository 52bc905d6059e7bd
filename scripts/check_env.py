"""
Compare a dotenv file against .env.example.

Usage:
    python scripts/check_env.py [.env]
"""

from pathlib import Path
import sys

from dotenv import dotenv_values

PROJECT_ROOT = Path(__file__).resolve().parents[1]
TEMPLATE = PROJECT_ROOT / ".env.example"

# Empty values are allowed for these keys, everything else must be filled in
OPTIONAL_KEYS = {
    "SENTRY_DSN",
    "UNLIMITED_EMAILS",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
}


def check_env_file(env_path: Path) -> list[str]:
    """Return human readable problems, empty when the file is complete."""
    required = dotenv_values(TEMPLATE)
    actual = dotenv_values(env_path)

    problems = [f"missing key {key}" for key in required if key not in actual]
    problems += [
        f"empty value for {key}"
        for key, value in actual.items()
        if key in required and key not in OPTIONAL_KEYS and not value
    ]
    if not (actual.get("OPENAI_API_KEY") or actual.get("ANTHROPIC_API_KEY")):
        problems.append("no LLM provider key set, script generation will fail")
    return problems


def main() -> None:
    env_path = PROJECT_ROOT / (sys.argv[1] if len(sys.argv) > 1 else ".env")
    if not env_path.exists():
        print(f"File not found: {env_path}")
        raise SystemExit(1)

    problems = check_env_file(env_path)
    for problem in problems:
        print(f"{env_path.name}: {problem}")
    if problems:
        raise SystemExit(1)
    print(f"{env_path.name} matches {TEMPLATE.name}.")


if __name__ == "__main__":
    main()
