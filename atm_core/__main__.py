"""Run the ATM menu with ``python -m atm_core``"""

import sys

from atm_core.cli import main

if __name__ == "__main__":
    sys.exit(main())
