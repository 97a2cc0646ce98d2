#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
estree_shims/__main__.py
========================

Entry point for ``python -m estree_shims``.

Usage
-----
    python -m estree_shims <command> [options]

Commands
--------
    check       Run the checkers on ESTree JSON dump files
    rules       List the registered checkers
"""

from estree_shims.main import main

if __name__ == "__main__":
    raise SystemExit(main())
