#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
rexit main module entry point.
Enables running rexit as a module: python -m rexit
"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
