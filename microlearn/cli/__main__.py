"""
Entry point for running the MicroLearn CLI as a module.

Usage:
    python -m microlearn.cli next
    python -m microlearn.cli --help
"""
from .main import run

if __name__ == "__main__":
    run()
