"""Local CI runner: lint, format check, type check and tests with coverage."""

from __future__ import annotations

import argparse
import shutil
import subprocess
import sys
from pathlib import Path

PACKAGE_DIR = "src/pantrylens"


def _run(name: str, command: list[str], cwd: Path) -> None:
    print(f"==> {name}", flush=True)
    subprocess.run(command, check=True, cwd=cwd)


def steps(python: str, lint: bool = True, coverage: bool = True) -> list[tuple[str, list[str]]]:
    """The ordered (name, command) steps of one CI run."""
    planned: list[tuple[str, list[str]]] = []
    if lint:
        planned.append(("ruff", [python, "-m", "ruff", "check", "src", "tests"]))
        planned.append(("black", [python, "-m", "black", "--check", "src", "tests"]))
        planned.append(("mypy", [python, "-m", "mypy", "src"]))

    pytest_cmd = [python, "-m", "pytest"]
    if coverage:
        pytest_cmd += [
            f"--cov={PACKAGE_DIR}",
            "--cov-report=term-missing",
            "--cov-report=xml",
        ]
    planned.append(("pytest", pytest_cmd))
    return planned


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="pantrylens-ci")
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Skip pip install steps (useful if deps already installed).",
    )
    parser.add_argument("--skip-lint", action="store_true", help="Only run the test suite.")
    parser.add_argument("--no-cov", action="store_true", help="Run pytest without coverage.")
    args = parser.parse_args(argv)

    cwd = Path.cwd()
    python = sys.executable

    if not args.skip_install:
        _run("pip", [python, "-m", "pip", "install", "--upgrade", "pip"], cwd)
        _run("install", [python, "-m", "pip", "install", "-e", ".[dev]"], cwd)

    if shutil.which("tesseract") is None:
        print("note: tesseract binary not found; local-engine tests use mocks", flush=True)

    try:
        for name, command in steps(python, lint=not args.skip_lint, coverage=not args.no_cov):
            _run(name, command, cwd)
    except subprocess.CalledProcessError as exc:
        print(f"CI step failed with exit code {exc.returncode}", file=sys.stderr)
        return exc.returncode or 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
