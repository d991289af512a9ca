"""Allow ``python -m ledger_exporter``."""

import sys

from ledger_exporter.cli import main

if __name__ == "__main__":
    sys.exit(main())
