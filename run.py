#!/usr/bin/env python3
"""Run the Fuse Tester application."""

import sys
from fuse_tester.main import main

if __name__ == "__main__":
    sys.exit(main())
