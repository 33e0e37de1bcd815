"""
Read Parquet files row by row and turn the rows back into records.

Rows are dictionaries keyed by column name, so nothing here depends on the
physical column order in the file.  Each field is looked up by name and
type-checked; optional fields may be missing or null, but a missing, null, or
mistyped required field means the row can't be reconstructed, and that stops
the whole conversion.
"""

import logging
import pyarrow.parquet as pq
from .model import SequenceRecord, SequenceQualityRecord, AnnotationRecord
from .util import ReconstructionError, engine_errors

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 65536

class ColumnarReader:
    """Iterate over the rows of a Parquet file as dictionaries."""

    def __init__(self, path, batch_size=DEFAULT_BATCH_SIZE):
        self.path = path
        self.batch_size = batch_size

    def __iter__(self):
        LOGGER.info("reading Parquet from %s", self.path)
        with engine_errors("parquet"):
            with pq.ParquetFile(self.path) as pqf:
                LOGGER.info("columns: %s", pqf.schema_arrow.names)
                for batch in pqf.iter_batches(batch_size=self.batch_size):
                    yield from batch.to_pylist()

    def records(self, record_type):
        """Iterate over the rows rebuilt as records of the given type."""
        try:
            reconstruct = RECONSTRUCTORS[record_type]
        except KeyError as err:
            raise TypeError(f"can't reconstruct {record_type.__name__} from rows") from err
        for idx, row in enumerate(self):
            try:
                yield reconstruct(row)
            except ReconstructionError as err:
                raise ReconstructionError(
                    f"row {idx} of {self.path}: {err.message}") from err


def _missing(name, required):
    if required:
        raise ReconstructionError(f"required column {name} is missing or null")

def get_string(row, name, required=True):
    """Get a text value from a row by column name."""
    value = row.get(name)
    if value is None:
        return _missing(name, required)
    if not isinstance(value, str):
        raise ReconstructionError(
            f"column {name} should be text, not {type(value).__name__}")
    return value

def get_int(row, name, required=True):
    """Get an integer value from a row by column name."""
    value = row.get(name)
    if value is None:
        return _missing(name, required)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ReconstructionError(
            f"column {name} should be an integer, not {type(value).__name__}")
    return value

def get_float(row, name, required=True):
    """Get a numeric value from a row by column name, as a float."""
    value = row.get(name)
    if value is None:
        return _missing(name, required)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReconstructionError(
            f"column {name} should be a number, not {type(value).__name__}")
    return float(value)

def get_map(row, name, required=True):
    """Get a string-to-string map from a row by column name.

    pyarrow gives map values as lists of (key, value) pairs (or as dicts,
    depending on version and options).  Repeated keys keep the first value.
    """
    value = row.get(name)
    if value is None:
        if required:
            _missing(name, required)
        return {}
    try:
        pairs = value.items()
    except AttributeError:
        pairs = value
    mapping = {}
    try:
        for key, item in pairs:
            if not isinstance(key, str) or not isinstance(item, (str, type(None))):
                raise TypeError
            mapping.setdefault(key, "" if item is None else item)
    except (TypeError, ValueError) as err:
        raise ReconstructionError(
            f"column {name} should be a map of text to text") from err
    return mapping

def sequence_from_row(row):
    return SequenceRecord(
        id=get_string(row, "id"),
        description=get_string(row, "description", required=False),
        sequence=get_string(row, "sequence"))

def sequence_quality_from_row(row):
    try:
        return SequenceQualityRecord(
            id=get_string(row, "id"),
            description=get_string(row, "description", required=False),
            sequence=get_string(row, "sequence"),
            quality=get_string(row, "quality"))
    except ValueError as err:
        raise ReconstructionError(str(err)) from err

def annotation_from_row(row):
    start = get_int(row, "start")
    end = get_int(row, "end")
    if start < 1 or end < start:
        raise ReconstructionError(f"invalid interval {start}-{end}")
    return AnnotationRecord(
        seqname=get_string(row, "seqname"),
        source=get_string(row, "source"),
        feature=get_string(row, "feature"),
        start=start,
        end=end,
        score=get_float(row, "score", required=False),
        strand=get_string(row, "strand"),
        frame=get_string(row, "frame", required=False),
        attributes=get_map(row, "attributes", required=False))

RECONSTRUCTORS = {
    SequenceRecord: sequence_from_row,
    SequenceQualityRecord: sequence_quality_from_row,
    AnnotationRecord: annotation_from_row}
