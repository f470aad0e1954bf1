"""Run the CLI with ``python -m occswap``."""

import sys

from occswap.cli.main import main

sys.exit(main())
