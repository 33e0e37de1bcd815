"""Utils for the tests, not tests for seqtab.util."""

import unittest
import gzip
from io import StringIO
from pathlib import Path
from unittest.mock import patch
from tempfile import TemporaryDirectory
import pysam

DATA = Path(__file__).parent / "data"

class TestBase(unittest.TestCase):
    """Base test class with a per-class data directory and a temp directory.

    self.path is data/<test module>/<test class>, and self.tmp is a fresh
    temporary directory for each test.
    """

    def setUp(self):
        self.path = self.__setup_path()
        self.__tmpdir = TemporaryDirectory()
        self.tmp = Path(self.__tmpdir.name)

    def tearDown(self):
        self.__tmpdir.cleanup()

    def __setup_path(self):
        """Path for supporting files for each class."""
        module = self.__class__.__module__.split(".")[-1]
        return DATA / module / self.__class__.__name__

    @staticmethod
    def redirect_streams(func):
        """Call func with stdout and stderr captured, and return both as text."""
        stdout, stderr = StringIO(), StringIO()
        with patch("sys.stdout", stdout), patch("sys.stderr", stderr):
            func()
        return stdout.getvalue(), stderr.getvalue()

    def assertGzipsMatch(self, path1, path2):
        """Assert that the contents of the two .gz files are identical."""
        self.__compare_files(path1, path2, gzip.open)

    def assertTxtsMatch(self, path1, path2):
        """Assert that the contents of the two text files are identical."""
        self.__compare_files(path1, path2, open)

    def __compare_files(self, path1, path2, opener):
        with opener(path1, "rt") as f1_in, opener(path2, "rt") as f2_in:
            contents1 = f1_in.read()
            contents2 = f2_in.read()
            if contents1 != contents2:
                raise AssertionError(f"mismatch between {path1} and {path2}")


class FakePipe:
    """Text sink that acts like a pipe whose reader goes away after some lines."""

    def __init__(self, max_lines):
        self.max_lines = max_lines
        self.lines = []

    def write(self, txt):
        if len(self.lines) >= self.max_lines:
            raise BrokenPipeError(32, "Broken pipe")
        self.lines.append(txt)
        return len(txt)

    def flush(self):
        pass


def write_example_bam(path):
    """Write a small BAM file with one mapped and one unmapped read."""
    header = {
        "HD": {"VN": "1.6", "SO": "unsorted"},
        "SQ": [{"SN": "chr1", "LN": 1000}]}
    with pysam.AlignmentFile(path, "wb", header=header) as f_out:
        seg = pysam.AlignedSegment(header=f_out.header)
        seg.query_name = "read1"
        seg.query_sequence = "ACGTACGT"
        seg.flag = 0
        seg.reference_id = 0
        seg.reference_start = 99
        seg.mapping_quality = 60
        seg.cigartuples = [(4, 2), (0, 6)]
        seg.next_reference_id = -1
        seg.next_reference_start = -1
        seg.query_qualities = pysam.qualitystring_to_array("IIII####")
        seg.set_tag("NM", 1)
        seg.set_tag("RG", "grp1")
        f_out.write(seg)
        seg = pysam.AlignedSegment(header=f_out.header)
        seg.query_name = "read2"
        seg.query_sequence = "GGCC"
        seg.flag = 4
        seg.reference_id = -1
        seg.reference_start = -1
        seg.mapping_quality = 255
        seg.next_reference_id = -1
        seg.next_reference_start = -1
        f_out.write(seg)


class FullDisk:
    """Text sink that fails every write the way a full disk does."""

    def write(self, txt):
        raise OSError(28, "No space left on device")

    def flush(self):
        pass
