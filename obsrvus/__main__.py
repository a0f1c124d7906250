import sys

from obsrvus.cli import main

sys.exit(main())
