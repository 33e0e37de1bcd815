"""
Various helper functions and the error types shared across the package.
"""

import itertools
from contextlib import contextmanager
import pyarrow as pa

class SeqTabError(Exception):
    """Base class for errors reported to the user by seqtab."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ParseError(SeqTabError):
    """An input file couldn't be parsed into records."""


class ReconstructionError(SeqTabError):
    """A Parquet row couldn't be turned back into a record."""


class ConversionError(SeqTabError):
    """A failure in file I/O or in the columnar/storage engines.

    origin is one of ORIGINS so callers can tell them apart without
    inspecting the chained exception.
    """

    ORIGINS = ("io", "arrow", "parquet")

    def __init__(self, message, origin):
        if origin not in self.ORIGINS:
            raise ValueError(f"unknown error origin: {origin}")
        super().__init__(f"{origin} error: {message}")
        self.origin = origin


@contextmanager
def engine_errors(origin):
    """Wrap pyarrow and OS-level exceptions raised in the block as ConversionError.

    OS errors are always reported as "io"; other Arrow exceptions get the
    given origin ("arrow" for building arrays, "parquet" for the file
    reading/writing side).
    """
    try:
        yield
    except BrokenPipeError:
        raise
    except OSError as err:
        raise ConversionError(str(err), "io") from err
    except pa.ArrowException as err:
        raise ConversionError(str(err), origin) from err

def chunked(iterable, size):
    """Split an iterable into consecutive lazy chunks of at most size items.

    Each chunk is an iterator over the shared underlying iterator, so it must
    be consumed completely before moving on to the next one.
    """
    if size < 1:
        raise ValueError(f"chunk size must be positive, not {size}")
    iterator = iter(iterable)
    for first in iterator:
        yield itertools.chain([first], itertools.islice(iterator, size - 1))

def encode_phred(qualnums):
    """Encode quality scores from list of integers as Illumina text string."""
    return "".join([chr(qual + 33) for qual in qualnums])

def decode_phred(qualtxt):
    """Decode quality scores from Illumina text string to list of integers."""
    return [ord(letter) - 33 for letter in qualtxt]
