"""
Root pytest configuration and shared fixtures.

This file contains configuration and fixtures shared across all test types.
Directory-specific conftest.py files can override or extend these fixtures.
"""

import sys
from pathlib import Path

# Add services and backend directories to Python path for tests
# This allows imports like "from shared import Database" and "from app import create_app"
project_root = Path(__file__).parent.parent
for path in (project_root / "backend", project_root / "services"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
