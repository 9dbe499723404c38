"""
Main entry point for clibrowse

This allows running the CLI with: python -m clibrowse
"""
from .cli import main

if __name__ == "__main__":
    main(prog_name="clibrowse")
