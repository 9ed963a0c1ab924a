"""Allow ``python -m gip``."""

import sys

from .cli import main

if __name__ == "__main__":
    main(sys.argv[1:])
