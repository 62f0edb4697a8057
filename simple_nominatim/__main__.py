"""Main entry point when executing simple_nominatim as a package.

This allows running the package using python -m simple_nominatim.
"""

from simple_nominatim.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
