from unittest.mock import patch
import pyarrow as pa
import pyarrow.parquet as pq
from seqtab import columnar_reader
from seqtab.columnar_writer import ColumnarWriter
from seqtab.model import SequenceRecord, SequenceQualityRecord, AnnotationRecord
from seqtab.util import ReconstructionError, ConversionError
from .util import TestBase

class TestAccessors(TestBase):

    def test_get_string(self):
        row = {"id": "seq1", "description": None, "num": 5}
        self.assertEqual(columnar_reader.get_string(row, "id"), "seq1")
        self.assertIsNone(columnar_reader.get_string(row, "description", required=False))
        self.assertIsNone(columnar_reader.get_string(row, "other", required=False))
        with self.assertRaises(ReconstructionError):
            columnar_reader.get_string(row, "description")
        with self.assertRaises(ReconstructionError):
            columnar_reader.get_string(row, "num")

    def test_get_int(self):
        row = {"start": 5, "flag": True, "name": "x"}
        self.assertEqual(columnar_reader.get_int(row, "start"), 5)
        for name in ("flag", "name", "missing"):
            with self.subTest(name=name), self.assertRaises(ReconstructionError):
                columnar_reader.get_int(row, name)

    def test_get_float(self):
        row = {"score": 2, "name": "x"}
        self.assertEqual(columnar_reader.get_float(row, "score"), 2.0)
        self.assertIsNone(columnar_reader.get_float(row, "missing", required=False))
        with self.assertRaises(ReconstructionError):
            columnar_reader.get_float(row, "name")

    def test_get_map(self):
        row = {
            "pairs": [("ID", "a"), ("Parent", "b"), ("Parent", "c")],
            "dict": {"ID": "a"},
            "bad": [("ID", 5)]}
        # repeated keys keep the first value
        self.assertEqual(columnar_reader.get_map(row, "pairs"), {"ID": "a", "Parent": "b"})
        self.assertEqual(columnar_reader.get_map(row, "dict"), {"ID": "a"})
        self.assertEqual(columnar_reader.get_map(row, "missing", required=False), {})
        with self.assertRaises(ReconstructionError):
            columnar_reader.get_map(row, "bad")
        with self.assertRaises(ReconstructionError):
            columnar_reader.get_map(row, "missing")


class TestColumnarReader(TestBase):

    def setUp(self):
        super().setUp()
        self.path_in = self.tmp/"in.parquet"

    def write_table(self, columns):
        pq.write_table(pa.table(columns), self.path_in)

    def test_iter_rows(self):
        self.write_table({"id": ["a", "b"], "sequence": ["A", "C"]})
        rows = list(columnar_reader.ColumnarReader(self.path_in))
        self.assertEqual(rows, [{"id": "a", "sequence": "A"}, {"id": "b", "sequence": "C"}])

    def test_file_closed(self):
        self.write_table({"id": ["a"], "sequence": ["A"]})
        with patch.object(pq.ParquetFile, "close", autospec=True) as close:
            list(columnar_reader.ColumnarReader(self.path_in))
        close.assert_called_once()

    def test_small_batches(self):
        self.write_table({"id": [f"s{idx}" for idx in range(10)], "sequence": ["A"]*10})
        reader = columnar_reader.ColumnarReader(self.path_in, batch_size=3)
        recs = list(reader.records(SequenceRecord))
        self.assertEqual(len(recs), 10)
        self.assertEqual(recs[-1].id, "s9")

    def test_column_order_and_extras(self):
        # columns are found by name, and anything extra is ignored
        self.write_table({
            "extra": [1, 2],
            "sequence": ["ACTG", "GG"],
            "description": ["x", None],
            "id": ["a", "b"]})
        recs = list(columnar_reader.ColumnarReader(self.path_in).records(SequenceRecord))
        self.assertEqual(recs, [
            SequenceRecord("a", "x", "ACTG"), SequenceRecord("b", None, "GG")])

    def test_optional_column_missing(self):
        self.write_table({"id": ["a"], "sequence": ["ACTG"]})
        recs = list(columnar_reader.ColumnarReader(self.path_in).records(SequenceRecord))
        self.assertEqual(recs, [SequenceRecord("a", None, "ACTG")])

    def test_required_column_missing(self):
        self.write_table({"id": ["a"], "description": ["x"]})
        with self.assertRaises(ReconstructionError) as cm:
            list(columnar_reader.ColumnarReader(self.path_in).records(SequenceRecord))
        self.assertIn("row 0", cm.exception.message)
        self.assertIn("sequence", cm.exception.message)

    def test_mistyped_column(self):
        self.write_table({"id": [1, 2], "sequence": ["A", "C"]})
        with self.assertRaises(ReconstructionError):
            list(columnar_reader.ColumnarReader(self.path_in).records(SequenceRecord))

    def test_quality_length_mismatch(self):
        self.write_table({"id": ["r1"], "sequence": ["ACGT"], "quality": ["II"]})
        with self.assertRaises(ReconstructionError):
            list(columnar_reader.ColumnarReader(self.path_in).records(SequenceQualityRecord))

    def test_invalid_interval(self):
        self.write_table({
            "seqname": ["chr1"], "source": ["src"], "feature": ["gene"],
            "start": [50], "end": [10], "strand": ["+"]})
        with self.assertRaises(ReconstructionError):
            list(columnar_reader.ColumnarReader(self.path_in).records(AnnotationRecord))

    def test_annotation_round_trip(self):
        records = [
            AnnotationRecord(
                "chr1", "src", "exon", 10, 50, 0.5, "-", "0",
                {"ID": "exon1", "Parent": "gene1"}),
            AnnotationRecord("chr2", "src", "gene", 1, 5, None, "?", None, {})]
        with ColumnarWriter(self.path_in, AnnotationRecord) as writer:
            writer.write_records(records)
        recs = list(columnar_reader.ColumnarReader(self.path_in).records(AnnotationRecord))
        self.assertEqual(recs, records)

    def test_not_parquet(self):
        self.path_in.write_text("not parquet\n")
        with self.assertRaises(ConversionError) as cm:
            list(columnar_reader.ColumnarReader(self.path_in))
        self.assertEqual(cm.exception.origin, "parquet")

    def test_missing_file(self):
        with self.assertRaises(ConversionError) as cm:
            list(columnar_reader.ColumnarReader(self.tmp/"missing.parquet"))
        self.assertEqual(cm.exception.origin, "io")

    def test_unsupported_type(self):
        self.write_table({"id": ["a"]})
        with self.assertRaises(TypeError):
            list(columnar_reader.ColumnarReader(self.path_in).records(dict))
