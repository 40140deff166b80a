"""
Discovery - turns scan targets into candidate types.

Re-exports:
    - PackageScanner: scans packages for classes
    - load_type: loads a class by fully-qualified name
"""

from .scanner import PackageScanner, load_type

__all__ = [
    "PackageScanner",
    "load_type",
]
