#!/usr/bin/env python3
"""Run the formatters, linters and the test suite in one go.

Steps, in order: Black check, isort check, Ruff, pytest. Output of every step
is collected and failing steps are repeated at the end.
"""

from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent
SOURCES = ["app", "core", "infrastructure", "main.py", "tests"]


def run_step(cmd: list[str], title: str) -> tuple[bool, str]:
    """Run one command from the project root; returns (passed, output)."""
    print(f"\n{'=' * 60}\n{title}\n$ {' '.join(cmd)}\n{'=' * 60}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"FAILED to start: {e}")
        return False, str(e)

    output = result.stdout + result.stderr
    passed = result.returncode == 0
    print("passed" if passed else "FAILED")
    if output.strip():
        print(output)
    return passed, output


def main() -> None:
    py = sys.executable
    steps = [
        ([py, "-m", "black", "--check", *SOURCES], "Black"),
        ([py, "-m", "isort", "--check-only", *SOURCES], "isort"),
        ([py, "-m", "ruff", "check", *SOURCES], "Ruff"),
        ([py, "-m", "pytest", "-q"], "pytest"),
    ]

    results = [(title, *run_step(cmd, title)) for cmd, title in steps]

    print(f"\n{'=' * 60}\nSummary\n{'=' * 60}")
    for title, passed, _ in results:
        print(f"{title}: {'ok' if passed else 'FAILED'}")

    failed = [(title, output) for title, passed, output in results if not passed]
    for title, output in failed:
        if output.strip():
            print(f"\n--- {title} ---\n{output}")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
