"""
Allow the buxbot package to be executed as a module.

This enables running the operator CLI with:
    python -m buxbot wallets <user_id>
    python -m buxbot refresh <user_id>
"""

import sys

from buxbot.main import main

if __name__ == "__main__":
    sys.exit(main())
