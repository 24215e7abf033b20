"""Main entry point for the Snap Card Generator."""

import sys

from snap_card_generator.cli import main

if __name__ == "__main__":
    sys.exit(main())
