"""Allow ``python -m mtcami``."""

import sys

from mtcami.cli import main

sys.exit(main())
