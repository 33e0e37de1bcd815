"""
Reading and writing GFF3 (and GTF-style) feature lines.

Each feature line becomes a GFFLine tuple with the nine columns parsed into
Python values.  Attributes are kept as an ordered list of (key, value) pairs,
duplicates included, so it's up to the caller to decide what to do with
repeated keys.
"""

import csv
import math
import re
import logging
from collections import namedtuple
from urllib.parse import quote, unquote
from .util import ParseError

LOGGER = logging.getLogger(__name__)

GFF_VERSION_HEADER = "##gff-version 3"
STRANDS = ["+", "-", ".", "?"]
MISSING = "."

GFFLine = namedtuple(
    "GFFLine",
    ["seqid", "source", "type", "start", "end", "score", "strand", "phase", "attributes"])

# Characters with reserved meanings in GFF3 column 9, plus the ones that would
# break the line structure itself.
RESERVED = "\t\n\r%;="
SAFE = "".join(chr(num) for num in range(32, 127) if chr(num) not in RESERVED)

def read_gff(handle):
    """Yield a GFFLine for each feature line in an open text handle.

    Comments and directives are skipped, and parsing stops at a ##FASTA
    directive since everything after that is sequence data.
    """
    reader = csv.reader(handle, delimiter="\t", quoting=csv.QUOTE_NONE)
    for row in reader:
        lineno = reader.line_num
        if not row or not "".join(row).strip():
            continue
        if row[0].startswith("##FASTA"):
            LOGGER.info("stopping at ##FASTA directive on line %d", lineno)
            break
        if row[0].startswith("#"):
            continue
        yield parse_row(row, lineno)

def parse_row(row, lineno=None):
    """Parse the nine tab-separated fields of one feature line."""
    where = f" on line {lineno}" if lineno is not None else ""
    if len(row) != 9:
        raise ParseError(f"expected 9 tab-separated GFF columns{where}, found {len(row)}")
    seqid, source, ftype, start, end, score, strand, phase, attrs = row
    try:
        start = int(start)
        end = int(end)
    except ValueError as err:
        raise ParseError(f"invalid GFF start/end{where}: {start}, {end}") from err
    if start < 1 or end < start:
        raise ParseError(f"invalid GFF interval{where}: {start}-{end}")
    if score == MISSING:
        score = None
    else:
        try:
            score = float(score)
        except ValueError as err:
            raise ParseError(f"invalid GFF score{where}: {score}") from err
        if not math.isfinite(score):
            raise ParseError(f"invalid GFF score{where}: {score}")
    if strand not in STRANDS:
        raise ParseError(f"invalid GFF strand{where}: {strand}")
    phase = None if phase == MISSING else phase
    return GFFLine(
        unquote(seqid), source, ftype, start, end, score, strand, phase,
        parse_attributes(attrs))

def parse_attributes(txt):
    """Parse column 9 into a list of (key, value) pairs.

    Both GFF3 (key=value;key=value) and GTF (key "value"; key "value";)
    styles are understood.  GTF quotes are removed here so nothing
    downstream ever sees them.
    """
    pairs = []
    if txt in ("", MISSING):
        return pairs
    for entry in txt.split(";"):
        entry = entry.strip()
        if not entry:
            continue
        if "=" in entry:
            key, val = entry.split("=", 1)
            pairs.append((unquote(key.strip()), unquote(val.strip())))
        else:
            match = re.match(r'(\S+)\s+"?(.*?)"?$', entry)
            if match:
                pairs.append(match.groups())
            else:
                pairs.append((entry, ""))
    return pairs

def format_attributes(attributes):
    """Format a mapping (or list of pairs) as a GFF3 column 9 string."""
    try:
        items = attributes.items()
    except AttributeError:
        items = attributes
    txt = ";".join(
        f"{quote(key, safe=SAFE)}={quote(val, safe=SAFE)}" for key, val in items)
    return txt or MISSING

def format_line(gffline):
    """Format a GFFLine as one tab-separated line, without the newline."""
    score = MISSING if gffline.score is None else f"{gffline.score:.7g}"
    phase = MISSING if gffline.phase is None else gffline.phase
    fields = [
        quote(gffline.seqid, safe=SAFE),
        gffline.source,
        gffline.type,
        str(gffline.start),
        str(gffline.end),
        score,
        gffline.strand,
        phase,
        format_attributes(gffline.attributes)]
    return "\t".join(fields)