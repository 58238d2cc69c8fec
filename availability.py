#!/usr/bin/env python3
"""
Convenience entry point for running salon-availability directly.

Usage: python availability.py [command] [options]
"""

from salon_availability.cli.app import app

if __name__ == "__main__":
    app()
