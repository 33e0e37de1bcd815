"""
Fixed Arrow schemas for each record type, plus the Parquet codec names.

Column names here match the record field names in seqtab.model.  Both the
Parquet writer and reader go by these, so they're the file format contract.
"""

import pyarrow as pa
from .model import SequenceRecord, SequenceQualityRecord, AnnotationRecord, AlignmentRecord
from .util import SeqTabError

SEQUENCE_SCHEMA = pa.schema([
    pa.field("id", pa.string(), nullable=False),
    pa.field("description", pa.string(), nullable=True),
    pa.field("sequence", pa.string(), nullable=False)])

SEQUENCE_QUALITY_SCHEMA = pa.schema([
    pa.field("id", pa.string(), nullable=False),
    pa.field("description", pa.string(), nullable=True),
    pa.field("sequence", pa.string(), nullable=False),
    pa.field("quality", pa.string(), nullable=False)])

ANNOTATION_SCHEMA = pa.schema([
    pa.field("seqname", pa.string(), nullable=False),
    pa.field("source", pa.string(), nullable=False),
    pa.field("feature", pa.string(), nullable=False),
    pa.field("start", pa.uint64(), nullable=False),
    pa.field("end", pa.uint64(), nullable=False),
    pa.field("score", pa.float32(), nullable=True),
    pa.field("strand", pa.string(), nullable=False),
    pa.field("frame", pa.string(), nullable=True),
    pa.field("attributes", pa.map_(pa.string(), pa.string()), nullable=False)])

CIGAR_TYPE = pa.struct([
    pa.field("kind", pa.string(), nullable=False),
    pa.field("length", pa.uint32(), nullable=False)])

ALIGNMENT_SCHEMA = pa.schema([
    pa.field("read_name", pa.string(), nullable=False),
    pa.field("flags", pa.uint16(), nullable=False),
    pa.field("reference_sequence_id", pa.int64(), nullable=True),
    pa.field("alignment_start", pa.int64(), nullable=True),
    pa.field("mapping_quality", pa.uint8(), nullable=True),
    pa.field("cigar", pa.list_(CIGAR_TYPE), nullable=False),
    pa.field("mate_reference_sequence_id", pa.int64(), nullable=True),
    pa.field("mate_alignment_start", pa.int64(), nullable=True),
    pa.field("template_length", pa.int32(), nullable=False),
    pa.field("sequence", pa.string(), nullable=False),
    pa.field("quality_scores", pa.list_(pa.string()), nullable=False),
    pa.field("data", pa.map_(pa.string(), pa.string()), nullable=False)])

SCHEMAS = {
    SequenceRecord: SEQUENCE_SCHEMA,
    SequenceQualityRecord: SEQUENCE_QUALITY_SCHEMA,
    AnnotationRecord: ANNOTATION_SCHEMA,
    AlignmentRecord: ALIGNMENT_SCHEMA}

# Command-line compression names to Parquet codec names
COMPRESSIONS = {
    "uncompressed": "none",
    "snappy": "snappy",
    "gzip": "gzip",
    "brotli": "brotli",
    "lz4": "lz4",
    "zstd": "zstd"}

def schema_for(record_type):
    """Get the Arrow schema for a record class."""
    try:
        return SCHEMAS[record_type]
    except KeyError as err:
        raise SeqTabError(f"no columnar schema for {record_type.__name__}") from err

def codec_for(compression):
    """Get the Parquet codec name for a compression name."""
    try:
        return COMPRESSIONS[compression.lower()]
    except KeyError as err:
        raise SeqTabError(
            f"compression should be one of {list(COMPRESSIONS)}, not {compression}") from err
