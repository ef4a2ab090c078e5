"""Allow ``python -m kvwire.client``."""

import sys

from .cli import main

sys.exit(main())
