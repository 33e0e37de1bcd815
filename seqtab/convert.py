"""
Convert between sequence/annotation files and JSON lines, CSV, and Parquet.

There's one function per conversion:

    fa2jsonl, fq2jsonl, gff2jsonl, bam2jsonl:  newline-delimited JSON
    fa2csv, fq2csv:                            CSV with a header row
    fa2pq, fq2pq, gff2pq, bam2pq:              Parquet
    pq2fa, pq2fq, pq2gff:                      back from Parquet

Text outputs go to standard output by default, and the text-output
conversions read standard input for an input path of "-".  If the reader of
standard output goes away early (for example when piping into head) the
conversion just stops.  Any other problem stops the conversion with an
exception; there's no skipping of bad records.
"""

import sys
import logging
from .columnar_reader import ColumnarReader
from .columnar_writer import ColumnarWriter, CHUNK_SIZE
from .model import RECORD_TYPES
from .record import RecordReader, RecordWriter
from .serialize import JsonLinesWriter, CsvWriter
from .util import engine_errors

LOGGER = logging.getLogger(__name__)

def read_records(reader, fmt):
    """Convert each native record from a RecordReader to our record type."""
    from_native = RECORD_TYPES[fmt].from_native
    for obj in reader:
        yield from_native(obj)

def write_serialized(records, make_writer, handle_out):
    """Write records with a serialized writer, stopping quietly on a broken pipe.

    make_writer is called with the output handle to get the writer, so that a
    header written at setup time is covered by the broken pipe handling too.
    Returns the number of records written.
    """
    count = 0
    try:
        with engine_errors("io"):
            writer = make_writer(handle_out)
            for record in records:
                writer.write_record(record)
                count += 1
            handle_out.flush()
    except BrokenPipeError:
        LOGGER.debug("output closed after %d records; stopping", count)
    return count

def _to_text(fmt, path_in, handle_out, make_writer):
    handle_out = sys.stdout if handle_out is None else handle_out
    with RecordReader(path_in, RecordReader.fmt_for(fmt, path_in)) as reader:
        return write_serialized(read_records(reader, fmt), make_writer, handle_out)

def _to_jsonl(fmt, path_in, handle_out):
    return _to_text(fmt, path_in, handle_out, JsonLinesWriter)

def _to_csv(fmt, path_in, handle_out):
    record_type = RECORD_TYPES[fmt]
    return _to_text(fmt, path_in, handle_out, lambda hndl: CsvWriter(hndl, record_type))

def fa2jsonl(path_in="-", handle_out=None):
    """Convert FASTA to JSON lines."""
    return _to_jsonl("fa", path_in, handle_out)

def fq2jsonl(path_in="-", handle_out=None):
    """Convert FASTQ to JSON lines."""
    return _to_jsonl("fq", path_in, handle_out)

def gff2jsonl(path_in="-", handle_out=None):
    """Convert GFF to JSON lines."""
    return _to_jsonl("gff", path_in, handle_out)

def bam2jsonl(path_in="-", handle_out=None):
    """Convert BAM to JSON lines."""
    return _to_jsonl("bam", path_in, handle_out)

def fa2csv(path_in="-", handle_out=None):
    """Convert FASTA to CSV."""
    return _to_csv("fa", path_in, handle_out)

def fq2csv(path_in="-", handle_out=None):
    """Convert FASTQ to CSV."""
    return _to_csv("fq", path_in, handle_out)

def _to_parquet(fmt, path_in, path_out, compression, input_compression, chunk_size):
    fmt_in = RecordReader.fmt_for(fmt, path_in, input_compression)
    with RecordReader(path_in, fmt_in) as reader, \
        ColumnarWriter(path_out, RECORD_TYPES[fmt], compression, chunk_size) as writer:
        return writer.write_records(read_records(reader, fmt))

def fa2pq(path_in, path_out, compression="uncompressed", input_compression=None,
        chunk_size=CHUNK_SIZE):
    """Convert FASTA to Parquet.

    input_compression is "uncompressed" or "gzip", or None to go by a .gz
    suffix on path_in.
    """
    return _to_parquet("fa", path_in, path_out, compression, input_compression, chunk_size)

def fq2pq(path_in, path_out, compression="uncompressed", input_compression=None,
        chunk_size=CHUNK_SIZE):
    """Convert FASTQ to Parquet."""
    return _to_parquet("fq", path_in, path_out, compression, input_compression, chunk_size)

def gff2pq(path_in, path_out, compression="uncompressed", input_compression=None,
        chunk_size=CHUNK_SIZE):
    """Convert GFF to Parquet."""
    return _to_parquet("gff", path_in, path_out, compression, input_compression, chunk_size)

def bam2pq(path_in, path_out, compression="uncompressed", chunk_size=CHUNK_SIZE):
    """Convert BAM to Parquet."""
    return _to_parquet("bam", path_in, path_out, compression, "uncompressed", chunk_size)

def _from_parquet(fmt, path_in, path_out):
    reader = ColumnarReader(path_in)
    count = 0
    with engine_errors("io"), \
        RecordWriter(path_out, RecordWriter.fmt_for(fmt, path_out)) as writer:
        for record in reader.records(RECORD_TYPES[fmt]):
            writer.write(record)
            count += 1
    LOGGER.info("wrote %d records to %s", count, path_out)
    return count

def pq2fa(path_in, path_out):
    """Convert Parquet (id/description/sequence columns) to FASTA."""
    return _from_parquet("fa", path_in, path_out)

def pq2fq(path_in, path_out):
    """Convert Parquet (id/description/sequence/quality columns) to FASTQ."""
    return _from_parquet("fq", path_in, path_out)

def pq2gff(path_in, path_out):
    """Convert Parquet with the GFF columns to GFF3."""
    return _from_parquet("gff", path_in, path_out)
