"""
Just the version string for the whole package.
This is stored in its own module for easy loading by setuptools.
"""

__version__ = "0.1.0"
