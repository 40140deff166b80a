"""
Servicebay CLI.

Usage:
    servicebay run -p myapp.services
    servicebay run -p myapp.services --check
    servicebay inspect -p myapp.services --json-output
    servicebay config --config conf/local.yaml
"""

from .. import __version__

__cli_name__ = "servicebay"

__all__ = ["__version__", "__cli_name__"]
