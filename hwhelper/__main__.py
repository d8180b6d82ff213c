"""Main entry point when executing hwhelper as a package.

This allows running the package using python -m hwhelper.
"""

from hwhelper.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
