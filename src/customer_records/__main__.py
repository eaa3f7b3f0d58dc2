"""Entry point for running customer_records as a module."""

from .cli import run

if __name__ == "__main__":
    run()
