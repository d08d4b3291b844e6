"""annotate-output entry point.

Supports: python -m annotate_output
"""

import sys

from .app import main

if __name__ == "__main__":
    sys.exit(main())
