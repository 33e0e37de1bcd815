"""
Helper classes for records stored in FASTA/FASTQ/GFF/BAM with/without gzip.

RecordReader gives the native record objects from the parsing libraries
(Biopython SeqRecords, GFFLine tuples, pysam AlignedSegments) and RecordWriter
writes the sequence and annotation record types back out.
"""

import sys
import gzip
import logging
from pathlib import Path
from Bio import SeqIO
import pysam
from . import gff
from .model import SequenceRecord, SequenceQualityRecord, AnnotationRecord
from .util import SeqTabError, ParseError, ConversionError

LOGGER = logging.getLogger(__name__)

# Mapping from file extensions to file format names used here
FMT_EXT_MAP = {
    ".fa": "fa",
    ".fasta": "fa",
    ".fna": "fa",
    ".afa": "fa",
    ".fq": "fq",
    ".fastq": "fq",
    ".gff": "gff",
    ".gff3": "gff",
    ".gtf": "gff",
    ".bam": "bam"}

INPUT_COMPRESSIONS = ["uncompressed", "gzip"]

# Mapping from file format names to functions that take text file handles and
# give format-specific record iterators.
READERS = {
    "fa": lambda hndl: SeqIO.parse(hndl, "fasta"),
    "fq": lambda hndl: SeqIO.parse(hndl, "fastq"),
    "gff": gff.read_gff}

# Which record type each output format takes
WRITER_TYPES = {
    "fa": SequenceRecord,
    "fq": SequenceQualityRecord,
    "gff": AnnotationRecord}

class RecordHandler:
    """Abstract class for shared generic record reading and writing
    functionality.  This behaves as a context manager to handle file opening
    and closing.

    See RecordReader/RecordWriter for the main stuff.
    """

    def __init__(self, pathlike, fmt=None):
        self.pathlike = pathlike
        self.fmt = self.infer_fmt(fmt)
        self.handle = None
        self.autoclose = True

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()

    def open(self):
        """Open the path as needed for reading or writing."""
        raise NotImplementedError(self)

    def close(self):
        """Close the file handle used here, if it's not stdin/stdout."""
        std_streams = [sys.stdin, sys.stdout]
        std_streams += [getattr(stream, "buffer", None) for stream in std_streams]
        # Flush to handle the case of an already-opened handle that won't be
        # closed here
        if self.handle and not self.handle.closed:
            if hasattr(self.handle, "flush"):
                self.handle.flush()
            if self.handle not in std_streams and self.autoclose:
                self.handle.close()

    def infer_fmt(self, fmt=None):
        """Guess file format from our path, with optional default."""
        fmt_inferred = self._infer_fmt(self.pathlike)
        LOGGER.info("given format: %s", fmt)
        LOGGER.info("inferred format: %s", fmt_inferred)
        if not fmt:
            if not fmt_inferred:
                raise SeqTabError(
                    f"format not detected from filename ({self.pathlike}).  "
                    "specify a format manually.")
            fmt = fmt_inferred
        if fmt.removesuffix("gz") not in FMT_EXT_MAP.values():
            raise SeqTabError(f"unknown format: {fmt}")
        if fmt == "bamgz":
            raise SeqTabError("gzip-wrapped BAM is not supported")
        return fmt

    @property
    def gzipped(self):
        return self.fmt.endswith("gz")

    @staticmethod
    def _infer_fmt(path):
        try:
            try:
                # Ordinary file paths
                path = Path(path)
            except TypeError:
                # for example, already-open file handles
                path = Path(str(path.name))
        except AttributeError:
            # for example, StringIO objects
            return None
        ext = path.suffix.lower()
        ext2 = Path(path.stem).suffix.lower()
        fmt2 = FMT_EXT_MAP.get(ext2)
        if ext == ".gz" and fmt2:
            return fmt2 + "gz"
        return FMT_EXT_MAP.get(ext)

    @classmethod
    def fmt_for(cls, base, pathlike, compression=None):
        """Format name for a known base format and input compression.

        With no compression given, a .gz suffix on the path decides it.
        """
        if compression is None:
            inferred = cls._infer_fmt(pathlike) or ""
            return base + "gz" if inferred.endswith("gz") else base
        if compression not in INPUT_COMPRESSIONS:
            raise SeqTabError(
                f"input compression should be one of {INPUT_COMPRESSIONS}, not {compression}")
        return base + "gz" if compression == "gzip" else base


class RecordReader(RecordHandler):
    """Generic record reader class.

    This will work as an iterator to produce native record objects for each
    record from the file.  Anything the parser complains about comes out as a
    ParseError.
    """

    def __init__(self, pathlike, fmt=None):
        super().__init__(pathlike, fmt)
        self.reader = None

    def open(self):
        try:
            if self.fmt == "bam":
                self._open_bam()
                self.reader = self.handle.fetch(until_eof=True)
            else:
                self._open_text()
                self.reader = READERS[self.fmt.removesuffix("gz")](self.handle)
        except (ValueError, UnicodeDecodeError) as err:
            # Biopython reads the first line as soon as the parser is created
            self.close()
            raise ParseError(f"can't parse {self.fmt} input {self.pathlike}: {err}") from err
        except OSError as err:
            raise ConversionError(f"can't read {self.pathlike}: {err}", "io") from err

    def _open_text(self):
        if hasattr(self.pathlike, "fileno"):
            self.handle = self.pathlike
            self.autoclose = False
        elif str(self.pathlike) == "-":
            if self.gzipped:
                LOGGER.info("reading gzip from stdin")
                self.handle = gzip.open(sys.stdin.buffer, "rt", encoding="utf-8")
            else:
                LOGGER.info("reading text from stdin")
                self.handle = sys.stdin
        else:
            if self.gzipped:
                LOGGER.info("reading from gzip")
                self.handle = gzip.open(self.pathlike, "rt", encoding="utf-8")
            else:
                LOGGER.info("reading from text")
                self.handle = open(self.pathlike, "rt", encoding="utf-8")

    def _open_bam(self):
        LOGGER.info("reading BAM")
        # check_sq=False so unaligned BAM (no @SQ lines) is allowed too
        try:
            self.handle = pysam.AlignmentFile(self.pathlike, "rb", check_sq=False)
        except ValueError as err:
            raise ParseError(f"can't parse BAM header in {self.pathlike}: {err}") from err

    def  __iter__(self):
        return self

    def __next__(self):
        if self.reader is None:
            raise StopIteration
        try:
            return next(self.reader)
        except (StopIteration, SeqTabError):
            raise
        except (ValueError, UnicodeDecodeError) as err:
            raise ParseError(f"can't parse {self.fmt} input {self.pathlike}: {err}") from err
        except OSError as err:
            if self.fmt == "bam":
                raise ParseError(f"can't parse BAM input {self.pathlike}: {err}") from err
            raise ConversionError(f"can't read {self.pathlike}: {err}", "io") from err


class RecordWriter(RecordHandler):
    """Generic record writer class.

    This will work as a context manager for opening and closing the underlying
    file and provides a write() method to write SequenceRecord,
    SequenceQualityRecord, or AnnotationRecord objects as FASTA, FASTQ, or
    GFF3.
    """

    def __init__(self, pathlike, fmt=None):
        super().__init__(pathlike, fmt)
        if self.fmt.removesuffix("gz") not in WRITER_TYPES:
            raise SeqTabError(f"writing {self.fmt} is not supported")

    def open(self):
        try:
            self._open()
        except OSError as err:
            raise ConversionError(f"can't write {self.pathlike}: {err}", "io") from err
        if self.fmt.removesuffix("gz") == "gff":
            self.handle.write(gff.GFF_VERSION_HEADER + "\n")

    def _open(self):
        if hasattr(self.pathlike, "fileno"):
            self.handle = self.pathlike
            self.autoclose = False
        elif str(self.pathlike) == "-":
            if self.gzipped:
                LOGGER.info("writing gzip to stdout")
                self.handle = gzip.open(sys.stdout.buffer, "wt", encoding="utf-8")
            else:
                LOGGER.info("writing text to stdout")
                self.handle = sys.stdout
        else:
            if self.gzipped:
                LOGGER.info("writing to gzip")
                self.handle = gzip.open(self.pathlike, "wt", encoding="utf-8")
            else:
                LOGGER.info("writing to text")
                self.handle = open(self.pathlike, "wt", encoding="utf-8")

    def write(self, record):
        """Write one record to the output stream."""
        fmt = self.fmt.removesuffix("gz")
        if not isinstance(record, WRITER_TYPES[fmt]):
            raise TypeError(f"can't write {type(record).__name__} as {fmt}")
        if fmt == "fa":
            SeqIO.write(record.to_native(), self.handle, "fasta-2line")
        elif fmt == "fq":
            SeqIO.write(record.to_native(), self.handle, "fastq")
        else:
            self.handle.write(gff.format_line(record.to_native()) + "\n")
