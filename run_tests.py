#!/usr/bin/env python
"""Run the qtrack test suite."""

import subprocess
import sys
from pathlib import Path


def main():
    """Run pytest from the project root."""
    project_root = Path(__file__).parent

    cmd = [sys.executable, "-m", "pytest", "tests/", "-v", "--tb=short", "--color=yes"]

    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=project_root)

    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
