"""
Write records to Parquet in fixed-size chunks.

Records are pulled lazily from the input and grouped into chunks of at most
CHUNK_SIZE.  For each chunk one column builder is made per schema field, every
record is appended field by field, and the finished columns are written as a
single record batch (and row group).  Then the builders are thrown away, so at
most one chunk's worth of records is held in memory at a time.

If the record iterator raises partway through a chunk, that chunk is never
written.  Chunks written before it stay in the file.
"""

import logging
import pyarrow as pa
import pyarrow.parquet as pq
from .model import as_row
from .schema import schema_for, codec_for
from .util import ConversionError, chunked, engine_errors

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 2 ** 20

class ColumnBuilder:
    """Collects values for one scalar column of one chunk."""

    def __init__(self, field):
        self.field = field
        self.values = []

    def __len__(self):
        return len(self.values)

    def append(self, value):
        """Append one value, or a null for None."""
        if value is None:
            self.append_null()
        else:
            self.append_value(value)

    def append_value(self, value):
        self.values.append(value)

    def append_null(self):
        if not self.field.nullable:
            raise ConversionError(
                f"null value for non-nullable column {self.field.name}", "arrow")
        self.values.append(None)

    def finish(self):
        """Build the Arrow array for everything appended so far."""
        return pa.array(self.values, type=self.field.type)


class NestedBuilder(ColumnBuilder):
    """Shared parts of the builders for variable-width nested columns.

    Rows are tracked with an offsets list: row i covers child items
    offsets[i] to offsets[i+1].  Nested columns can't be null.
    """

    def __init__(self, field):
        super().__init__(field)
        self.offsets = [0]

    def __len__(self):
        return len(self.offsets) - 1

    def append_null(self):
        raise ConversionError(f"null value for nested column {self.field.name}", "arrow")

    def close_entry(self, num_items):
        """Mark the end of the current row after num_items more child items."""
        self.offsets.append(self.offsets[-1] + num_items)

    def finish_offsets(self):
        return pa.array(self.offsets, type=pa.int32())


class MapBuilder(NestedBuilder):
    """Builds a map column as parallel key and value arrays.

    Each row's keys all go to the keys builder and its values to the values
    builder in the same order, then the row is closed.
    """

    def __init__(self, field):
        super().__init__(field)
        self.keys = make_builder(field.type.key_field)
        self.items = make_builder(field.type.item_field)

    def append_value(self, value):
        for key, item in value.items():
            self.keys.append(key)
            self.items.append(item)
        self.close_entry(len(value))

    def finish(self):
        return pa.MapArray.from_arrays(
            self.finish_offsets(), self.keys.finish(), self.items.finish())


class ListBuilder(NestedBuilder):
    """Builds a list column from a child builder for the list items."""

    def __init__(self, field):
        super().__init__(field)
        self.child = make_builder(field.type.value_field)

    def append_value(self, value):
        for item in value:
            self.child.append(item)
        self.close_entry(len(value))

    def finish(self):
        return pa.ListArray.from_arrays(self.finish_offsets(), self.child.finish())


class StructBuilder(ColumnBuilder):
    """Builds a struct column with one child builder per struct field.

    Values are dictionaries keyed by struct field name.
    """

    def __init__(self, field):
        super().__init__(field)
        subfields = [field.type.field(idx) for idx in range(field.type.num_fields)]
        self.children = {sub.name: make_builder(sub) for sub in subfields}
        self.subfields = subfields
        self.num = 0

    def __len__(self):
        return self.num

    def append_value(self, value):
        for name, child in self.children.items():
            child.append(value.get(name))
        self.num += 1

    def append_null(self):
        raise ConversionError(f"null value for struct column {self.field.name}", "arrow")

    def finish(self):
        arrays = [child.finish() for child in self.children.values()]
        return pa.StructArray.from_arrays(arrays, fields=self.subfields)

def make_builder(field):
    """Make the right kind of column builder for an Arrow field."""
    if pa.types.is_map(field.type):
        return MapBuilder(field)
    if pa.types.is_list(field.type):
        return ListBuilder(field)
    if pa.types.is_struct(field.type):
        return StructBuilder(field)
    return ColumnBuilder(field)


class ColumnarWriter:
    """Parquet writer for one record type.

    This will work as a context manager for opening and closing the
    underlying Parquet file and provides write_records() to write any number
    of records, chunk by chunk.  Column statistics are always written.
    """

    def __init__(self, path, record_type, compression="uncompressed", chunk_size=CHUNK_SIZE):
        self.path = path
        self.record_type = record_type
        self.schema = schema_for(record_type)
        self.codec = codec_for(compression)
        if chunk_size < 1:
            raise ValueError(f"chunk size must be positive, not {chunk_size}")
        self.chunk_size = chunk_size
        self.writer = None
        self.count = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()

    def open(self):
        """Create the Parquet file and write its header."""
        LOGGER.info("writing Parquet to %s (codec: %s)", self.path, self.codec)
        with engine_errors("parquet"):
            self.writer = pq.ParquetWriter(
                self.path, self.schema, compression=self.codec, write_statistics=True)

    def close(self):
        """Write the file footer and close the file."""
        if self.writer is not None:
            with engine_errors("parquet"):
                self.writer.close()
            self.writer = None
            LOGGER.info("wrote %d records to %s", self.count, self.path)

    def write_records(self, records):
        """Write all records from an iterable, returning the running total."""
        for chunk in chunked(records, self.chunk_size):
            self.write_chunk(chunk)
        return self.count

    def write_chunk(self, chunk):
        """Build one record batch from an iterable of records and write it."""
        batch = self.build_batch(chunk)
        with engine_errors("parquet"):
            self.writer.write_batch(batch, row_group_size=batch.num_rows)
        self.count += batch.num_rows
        LOGGER.debug("flushed chunk of %d records (%d total)", batch.num_rows, self.count)

    def build_batch(self, chunk):
        """Fan each record's fields out to per-column builders.

        The builders are local so they're discarded as soon as the batch is
        built.
        """
        builders = {field.name: make_builder(field) for field in self.schema}
        for record in chunk:
            if not isinstance(record, self.record_type):
                raise TypeError(
                    f"expected {self.record_type.__name__}, got {type(record).__name__}")
            row = as_row(record)
            for name, builder in builders.items():
                builder.append(row[name])
        with engine_errors("arrow"):
            arrays = [builder.finish() for builder in builders.values()]
            return pa.RecordBatch.from_arrays(arrays, schema=self.schema)
