"""CLI entry point - wrapper around the cli package

Run ``python cli.py <command>`` from the project root.
"""

from cli.main import main

if __name__ == "__main__":
    main()
