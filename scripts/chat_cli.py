#!/usr/bin/env python3
"""Interactive CLI to chat with the reservation assistant.

Same as the ``reservas-chat`` console script; kept for running from a
source checkout.
"""

import sys

from reservas.cli import main

if __name__ == "__main__":
    sys.exit(main())
