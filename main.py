#!/usr/bin/env python3
"""
edna_compare Main Script
Run from the repository root: python main.py [-c config.yaml]
"""

from edna_compare.main import main


if __name__ == "__main__":
    main()
