"""Allow ``python -m embedframe``."""

import sys

from .cli import main


sys.exit(main())
