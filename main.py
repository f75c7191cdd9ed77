import sys

from dunning_letters.cli import main

if __name__ == "__main__":
    sys.exit(main())
