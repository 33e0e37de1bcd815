"""
Flat record types for each supported input shape.

Each record type knows how to build itself from the native record object
produced by the parsing library for its format (from_native), and the
sequence and annotation types know how to turn themselves back into native
objects for writing (to_native).  Field declaration order is the column order
everywhere: JSON keys, CSV columns, and Parquet columns.
"""

import re
import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord
from .gff import GFFLine
from .util import encode_phred, decode_phred

# CIGAR operation codes in the order of their BAM integer encoding
CIGAR_OPS = "MIDNSHP=XB"
# SAM/BAM value for "mapping quality unavailable"
MAPQ_MISSING = 255

def as_row(record):
    """Convert a record to a plain dictionary, in field declaration order."""
    return dataclasses.asdict(record)

def split_defline(obj):
    """Get (ID, description) from a SeqRecord, with None for no description.

    Biopython has some weirdly asymmetric behavior with sequence IDs and
    descriptions (the description usually repeats the ID), so this handles
    that part directly.
    """
    desc = obj.description
    if not desc or desc == "<unknown description>":
        return obj.id, None
    if desc.startswith(obj.id):
        # If there's whitespace, use that as a separator and record the
        # description after it.  If not, just ID.
        match = re.match(r"(\S+)(\s?)(.*)", desc)
        seq_id, spacer, seq_desc = match.groups()
        if not spacer:
            seq_desc = None
        return seq_id, seq_desc
    # If the description *doesn't* have the ID at the start, just take both
    # as-is.
    return obj.id, desc

def _defline_description(seq_id, desc):
    # Biopython's writers use the description as the whole title when it
    # starts with the ID, so give it the full title to avoid it doing its own
    # guessing.
    if desc:
        return f"{seq_id} {desc}"
    return ""


@dataclass(frozen=True)
class SequenceRecord:
    """One FASTA entry."""
    id: str
    description: Optional[str]
    sequence: str

    @classmethod
    def from_native(cls, obj):
        seq_id, desc = split_defline(obj)
        return cls(id=seq_id, description=desc, sequence=str(obj.seq))

    def to_native(self):
        return SeqRecord(
            Seq(self.sequence),
            id=self.id,
            name="",
            description=_defline_description(self.id, self.description))


@dataclass(frozen=True)
class SequenceQualityRecord:
    """One FASTQ entry, with quality scores as Phred+33 text."""
    id: str
    description: Optional[str]
    sequence: str
    quality: str

    def __post_init__(self):
        if len(self.quality) != len(self.sequence):
            raise ValueError(
                f"quality length ({len(self.quality)}) doesn't match "
                f"sequence length ({len(self.sequence)}) for {self.id}")

    @classmethod
    def from_native(cls, obj):
        seq_id, desc = split_defline(obj)
        quals = obj.letter_annotations.get("phred_quality", [])
        return cls(
            id=seq_id,
            description=desc,
            sequence=str(obj.seq),
            quality=encode_phred(quals))

    def to_native(self):
        return SeqRecord(
            Seq(self.sequence),
            id=self.id,
            name="",
            description=_defline_description(self.id, self.description),
            letter_annotations={"phred_quality": decode_phred(self.quality)})


@dataclass(frozen=True)
class AnnotationRecord:
    """One GFF feature line.

    Attributes keep only the first value seen for each key.  (GFF3 does allow
    a key to repeat, so this isn't a faithful representation of every file.)
    """
    seqname: str
    source: str
    feature: str
    start: int
    end: int
    score: Optional[float]
    strand: str
    frame: Optional[str]
    attributes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_native(cls, obj):
        attributes = {}
        for key, val in obj.attributes:
            attributes.setdefault(key, val)
        return cls(
            seqname=obj.seqid,
            source=obj.source,
            feature=obj.type,
            start=obj.start,
            end=obj.end,
            score=obj.score,
            strand=obj.strand,
            frame=obj.phase,
            attributes=attributes)

    def to_native(self):
        return GFFLine(
            self.seqname, self.source, self.feature, self.start, self.end,
            self.score, self.strand, self.frame, list(self.attributes.items()))


@dataclass(frozen=True)
class CigarOperation:
    kind: str
    length: int


@dataclass(frozen=True)
class AlignmentRecord:
    """One BAM alignment, with everything stringly-typed that SAM would be."""
    read_name: str
    flags: int
    reference_sequence_id: Optional[int]
    alignment_start: Optional[int]
    mapping_quality: Optional[int]
    cigar: List[CigarOperation]
    mate_reference_sequence_id: Optional[int]
    mate_alignment_start: Optional[int]
    template_length: int
    sequence: str
    quality_scores: List[str]
    data: Dict[str, str]

    @classmethod
    def from_native(cls, obj):
        """Build from a pysam AlignedSegment.

        pysam uses 0-based positions with -1 for missing; here positions are
        1-based and missing is None.
        """
        data = {}
        for tag, val in obj.get_tags():
            data.setdefault(tag, _format_tag_value(val))
        mapq = obj.mapping_quality
        return cls(
            read_name=obj.query_name or "*",
            flags=obj.flag,
            reference_sequence_id=_optional_id(obj.reference_id),
            alignment_start=_optional_pos(obj.reference_start),
            mapping_quality=None if mapq == MAPQ_MISSING else mapq,
            cigar=[CigarOperation(CIGAR_OPS[op], length) for op, length in obj.cigartuples or []],
            mate_reference_sequence_id=_optional_id(obj.next_reference_id),
            mate_alignment_start=_optional_pos(obj.next_reference_start),
            template_length=obj.template_length,
            sequence=obj.query_sequence or "",
            quality_scores=[str(qual) for qual in obj.query_qualities or []],
            data=data)

def _optional_id(refid):
    return None if refid is None or refid < 0 else refid

def _optional_pos(pos):
    return None if pos is None or pos < 0 else pos + 1

def _format_tag_value(val):
    # B-type array tags come back as arrays of numbers
    if isinstance(val, (list, tuple)) or hasattr(val, "typecode"):
        return ",".join(str(item) for item in val)
    return str(val)

# Mapping from input format names to the record type built from each native
# record
RECORD_TYPES = {
    "fa": SequenceRecord,
    "fq": SequenceQualityRecord,
    "gff": AnnotationRecord,
    "bam": AlignmentRecord}
