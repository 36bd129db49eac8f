import sys

from texstore.cli import main

sys.exit(main())
