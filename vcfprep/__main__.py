"""Allow ``python -m vcfprep``."""

import sys

from .cli import main

sys.exit(main())
