#!/usr/bin/env python3
"""
ATM Service Entry Point

Starts the interactive ATM menu over the seeded in-memory accounts.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from atm_core.cli import main


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nThank you for using Simple ATM. Goodbye!")
    except Exception as e:
        print(f"Error starting ATM: {e}")
        sys.exit(1)
