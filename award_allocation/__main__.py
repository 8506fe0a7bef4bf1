import sys

from award_allocation.cli import main

sys.exit(main())
