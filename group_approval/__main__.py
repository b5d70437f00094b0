import sys

from group_approval.contract.cli import main

if __name__ == "__main__":
    sys.exit(main())
