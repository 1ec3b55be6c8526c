# conftest.py — package root
#
# Ensures that the repository root is on sys.path when pytest is invoked from
# inside the package directory, so "import epicascade" resolves without a
# package install.
#
# Usage:
#   pytest epicascade/tests -v
#   cd epicascade/ && pytest tests/test_engine.py -v

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
