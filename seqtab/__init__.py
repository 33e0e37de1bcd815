"""
Convert biological sequence and annotation files to and from JSON lines, CSV,
and Parquet.
"""

from .version import __version__
