"""Root conftest.py: makes the local dynamotest package take precedence over any installed version."""

from __future__ import annotations

import sys
from pathlib import Path

# Insert the project root at the front of sys.path so that `import
# dynamotest` and `import examples` resolve to the local source tree, even
# if an older dynamotest is installed in the environment.
_root = str(Path(__file__).parent)
if _root not in sys.path:
    sys.path.insert(0, _root)
