#!/usr/bin/env python
"""
Run ipstat from project root without installing it.
"""
import os
import sys

project_root = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(project_root, 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from ipstat_cli.main import cli

if __name__ == "__main__":
    cli()
