#!/usr/bin/env python3
"""
Standalone entry point script for customer records.
This can be used when the package isn't installed.
"""

import sys
import os

# Add the src directory to Python path so we can import the package
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from customer_records.cli import run

if __name__ == "__main__":
    run()
