import sys

from smart_display.cli import main

sys.exit(main())
