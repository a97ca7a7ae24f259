import sys

from tracemark import main

if __name__ == "__main__":
    sys.exit(main())
