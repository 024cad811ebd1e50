import sys

from spread_advisor.cli import main

if __name__ == "__main__":
    sys.exit(main())
