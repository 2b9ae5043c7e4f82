#!/usr/bin/env python3
"""
CLI entry point for relaytv.cli module.

This allows running: python -m relaytv.cli
"""

from .main import cli

if __name__ == "__main__":
    cli()
