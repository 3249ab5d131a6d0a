#!/usr/bin/env python3
"""
run.py - Main entry point for the Connect Four engine

    python run.py play --difficulty hard
    python run.py analyze --moves 3342
    python run.py benchmark --iterations 8
"""

import os
import sys

# Add the project root to Python path so the package imports without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from connect4engine.interfaces.cli import main

if __name__ == "__main__":
    main()
