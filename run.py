#!/usr/bin/env python3
import os
import sys

# Add project directory to Python path so the package runs from a checkout
project_dir = os.path.dirname(os.path.abspath(__file__))
if project_dir not in sys.path:
    sys.path.insert(0, project_dir)

from smart_display.cli import main

if __name__ == "__main__":
    sys.exit(main())
