#!/usr/bin/env python3
"""
Run all tests in tests/.
Usage: from project root:
  ./venv/bin/python scripts/run_all_tests.py
  or: ./venv/bin/pytest tests/ -v
"""
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def main():
    pytest_exe = PROJECT_ROOT / "venv" / "bin" / "pytest"
    if not pytest_exe.exists():
        print("venv not found. Create it and install the test extra: python -m venv venv && ./venv/bin/pip install -e '.[test]'")
        sys.exit(1)
    tests_dir = PROJECT_ROOT / "tests"
    cmd = [str(pytest_exe), str(tests_dir), "-v", "--tb=short"]
    result = subprocess.run(cmd, cwd=str(PROJECT_ROOT))
    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
