#!/usr/bin/env python3
"""
Entry point for running the bridge package directly.
This allows the package to be executed as: python -m codemode_mcp
"""

from . import main

if __name__ == "__main__":
    main()
