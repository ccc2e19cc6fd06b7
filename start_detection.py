#!/usr/bin/env python3
"""Entry point for the Package Detector system."""

import sys

from package_detector.main import main

if __name__ == "__main__":
    sys.exit(main())
