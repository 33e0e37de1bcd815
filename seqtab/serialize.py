"""
Writers that serialize records as text, one line per record.

JsonLinesWriter writes any record type as newline-delimited JSON.  CsvWriter
writes the sequence record types as CSV with a header row.  Neither one
buffers anything beyond what the underlying handle does, so a failed write
(including BrokenPipeError) goes straight back to the caller.
"""

import csv
import json
from .model import as_row, SequenceRecord, SequenceQualityRecord

# CSV column names for each record type, as {field name: column name}
CSV_COLUMNS = {
    SequenceRecord: {
        "id": "id",
        "description": "desc",
        "sequence": "seq"},
    SequenceQualityRecord: {
        "id": "id",
        "description": "desc",
        "sequence": "seq",
        "quality": "qual"}}

class SerializedWriter:
    """Abstract class for writing records to an open text handle."""

    def __init__(self, handle):
        self.handle = handle

    def write_record(self, record):
        """Serialize one record to the handle."""
        raise NotImplementedError(self)


class JsonLinesWriter(SerializedWriter):
    """Write each record as one compact JSON object per line.

    Keys follow the record's field order and missing optional values are
    written as null.
    """

    def write_record(self, record):
        txt = json.dumps(
            as_row(record), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        self.handle.write(txt + "\n")


class CsvWriter(SerializedWriter):
    """Write each record as one CSV row.

    The header row is written right away, so an empty input still gives a
    header.
    """

    def __init__(self, handle, record_type):
        super().__init__(handle)
        try:
            self.columns = CSV_COLUMNS[record_type]
        except KeyError as err:
            raise TypeError(f"no CSV layout for {record_type.__name__}") from err
        self.writer = csv.writer(self.handle, lineterminator="\n")
        self.writer.writerow(self.columns.values())

    def write_record(self, record):
        row = as_row(record)
        self.writer.writerow(["" if row[key] is None else row[key] for key in self.columns])
