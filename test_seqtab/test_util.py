import pyarrow as pa
from seqtab import util
from .util import TestBase

class TestChunked(TestBase):

    def chunk_lists(self, items, size):
        return [list(chunk) for chunk in util.chunked(items, size)]

    def test_chunked(self):
        self.assertEqual(self.chunk_lists(range(7), 3), [[0, 1, 2], [3, 4, 5], [6]])

    def test_chunked_exact(self):
        self.assertEqual(self.chunk_lists(range(6), 3), [[0, 1, 2], [3, 4, 5]])

    def test_chunked_empty(self):
        self.assertEqual(self.chunk_lists([], 3), [])

    def test_chunked_lazy(self):
        # nothing past the current chunk is pulled from the source
        pulled = []
        def source():
            for idx in range(10):
                pulled.append(idx)
                yield idx
        chunks = util.chunked(source(), 4)
        self.assertEqual(list(next(chunks)), [0, 1, 2, 3])
        self.assertEqual(pulled, [0, 1, 2, 3])

    def test_chunked_bad_size(self):
        with self.assertRaises(ValueError):
            list(util.chunked(range(3), 0))


class TestErrors(TestBase):

    def test_message(self):
        err = util.ParseError("bad record")
        self.assertEqual(err.message, "bad record")
        self.assertIsInstance(err, util.SeqTabError)

    def test_conversion_error(self):
        err = util.ConversionError("disk full", "io")
        self.assertEqual(err.origin, "io")
        self.assertIn("disk full", err.message)
        with self.assertRaises(ValueError):
            util.ConversionError("oops", "elsewhere")

    def test_engine_errors_io(self):
        with self.assertRaises(util.ConversionError) as cm:
            with util.engine_errors("parquet"):
                raise FileNotFoundError("no such file")
        self.assertEqual(cm.exception.origin, "io")
        self.assertIsInstance(cm.exception.__cause__, FileNotFoundError)

    def test_engine_errors_arrow(self):
        with self.assertRaises(util.ConversionError) as cm:
            with util.engine_errors("arrow"):
                pa.array(["not a number"], type=pa.int64())
        self.assertEqual(cm.exception.origin, "arrow")

    def test_engine_errors_broken_pipe(self):
        # broken pipes are left alone for the caller to handle
        with self.assertRaises(BrokenPipeError):
            with util.engine_errors("io"):
                raise BrokenPipeError()

    def test_engine_errors_other(self):
        with self.assertRaises(KeyError):
            with util.engine_errors("arrow"):
                raise KeyError("x")


class TestPhred(TestBase):

    def test_encode_phred(self):
        self.assertEqual(util.encode_phred([33, 33, 33]), "BBB")

    def test_decode_phred(self):
        self.assertEqual(util.decode_phred("BBB"), [33, 33, 33])
