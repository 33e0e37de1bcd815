"""
Convert biological sequence files to analytics-friendly formats and back.

FASTA, FASTQ, GFF, and BAM inputs can be written as newline-delimited JSON or
CSV on standard output, or as Parquet files, and Parquet files in the FASTA,
FASTQ, and GFF layouts can be converted back.
"""

import os
import sys
import argparse
import logging
import shutil
import textwrap
from . import convert
from .columnar_writer import CHUNK_SIZE
from .record import INPUT_COMPRESSIONS
from .schema import COMPRESSIONS
from .util import SeqTabError
from .version import __version__

LOGGER = logging.getLogger()

# subcommand name: (help text, conversion function)
TEXT_COMMANDS = {
    "fa2jsonl": ("Convert FASTA to JSON lines", convert.fa2jsonl),
    "fq2jsonl": ("Convert FASTQ to JSON lines", convert.fq2jsonl),
    "gff2jsonl": ("Convert GFF to JSON lines", convert.gff2jsonl),
    "bam2jsonl": ("Convert BAM to JSON lines", convert.bam2jsonl),
    "fa2csv": ("Convert FASTA to CSV", convert.fa2csv),
    "fq2csv": ("Convert FASTQ to CSV", convert.fq2csv)}

TO_PARQUET_COMMANDS = {
    "fa2pq": ("Convert FASTA to Parquet", convert.fa2pq),
    "fq2pq": ("Convert FASTQ to Parquet", convert.fq2pq),
    "gff2pq": ("Convert GFF to Parquet", convert.gff2pq),
    "bam2pq": ("Convert BAM to Parquet", convert.bam2pq)}

FROM_PARQUET_COMMANDS = {
    "pq2fa": ("Convert Parquet to FASTA", convert.pq2fa),
    "pq2fq": ("Convert Parquet to FASTQ", convert.pq2fq),
    "pq2gff": ("Convert Parquet to GFF", convert.pq2gff)}

def rewrap(txt):
    """Re-wrap text at 80 columns or less, preserving paragraphs."""
    width = min(80, shutil.get_terminal_size().columns)
    # if the terminal width was supposedly 0, we'll just use 80
    if not width:
        width = 80
    def wrap(txt):
        if txt.startswith("    "):
            return txt
        return "\n".join(textwrap.wrap(txt, width=width))
    chunks = txt.strip().split("\n\n")
    return "\n\n".join([wrap(chunk) for chunk in chunks])

def main(arglist=None):
    """Command-line interface.

    args will be parsed from sys.argv by default, or a given list.
    """
    parser = __setup_arg_parser()
    args = parser.parse_args(arglist)
    if not vars(args):
        parser.print_help()
        sys.exit(0)
    _setup_log(args.verbose, args.quiet)
    try:
        try:
            args.func(args)
        except SeqTabError as err:
            sys.stderr.write(
                f"\nseqtab failed because: {err.message}\n"
                "Consider adding -v or -vv to the command if the problem isn't clear.\n")
            sys.exit(1)
        sys.stdout.flush()
        sys.stderr.flush()
    except BrokenPipeError:
        # If stdout and/or stderr were writing to a pipe and that pipe is now
        # closed, we'll swap in /dev/null for whichever it is to handle this
        # quietly and to prevent it from arising again when Python tries to
        # flush file handles on exit.
        # https://docs.python.org/3/library/signal.html#note-on-sigpipe
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            sys.stdout.flush()
        except BrokenPipeError:
            os.dup2(devnull, sys.stdout.fileno())
        try:
            sys.stderr.flush()
        except BrokenPipeError:
            os.dup2(devnull, sys.stderr.fileno())

def _main_text(args):
    args.convert(path_in=args.input)

def _main_to_parquet(args):
    kwargs = {
        "compression": args.compression,
        "chunk_size": args.chunk_size}
    if args.convert is not convert.bam2pq:
        kwargs["input_compression"] = args.input_compression
    args.convert(args.input, args.output, **kwargs)

def _main_from_parquet(args):
    args.convert(args.input, args.output)

def _setup_log(verbose, quiet):
    # Handle warnings via logging
    logging.captureWarnings(True)
    # Configure the root logger
    # each -v or -q decreases or increases the log level by 10, starting from
    # WARNING by default.
    lvl_current = LOGGER.getEffectiveLevel()
    lvl_subtract = (verbose - quiet) * 10
    verbosity = max(0, lvl_current - lvl_subtract)
    logging.basicConfig(
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        level=verbosity)

def _positive_int(txt):
    val = int(txt)
    if val < 1:
        raise argparse.ArgumentTypeError(f"should be a positive integer: {txt}")
    return val

def __setup_arg_parser():
    parser = argparse.ArgumentParser(
        description=rewrap(__doc__),
        formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--version", "-V", action="version", version=__version__)
    subps = parser.add_subparsers(metavar="", description="seqtab "
            "conversions are split up into these sub-commands.  Call seqtab "
            "subcommand --help to get more detailed information on each one.")

    for name, (helptxt, func) in TEXT_COMMANDS.items():
        subp = subps.add_parser(name, help=helptxt, description=helptxt)
        __add_common_args(subp)
        subp.add_argument("input", nargs="?", default="-",
            help="input file path (default: standard input)")
        subp.set_defaults(func=_main_text, convert=func)

    for name, (helptxt, func) in TO_PARQUET_COMMANDS.items():
        subp = subps.add_parser(name, help=helptxt, description=helptxt)
        __add_common_args(subp)
        subp.add_argument("input", help="input file path")
        subp.add_argument("output", help="output Parquet file path")
        subp.add_argument("-c", "--compression", choices=list(COMPRESSIONS),
            default="uncompressed",
            help="Parquet compression codec (default: uncompressed)")
        if func is not convert.bam2pq:
            subp.add_argument("-i", "--input-compression", choices=INPUT_COMPRESSIONS,
                help="compression of the input file (default: detect from filename)")
        subp.add_argument("--chunk-size", type=_positive_int, default=CHUNK_SIZE,
            help=f"records per Parquet row group (default: {CHUNK_SIZE})")
        subp.set_defaults(func=_main_to_parquet, convert=func)

    for name, (helptxt, func) in FROM_PARQUET_COMMANDS.items():
        subp = subps.add_parser(name, help=helptxt, description=helptxt)
        __add_common_args(subp)
        subp.add_argument("input", help="input Parquet file path")
        subp.add_argument("output",
            help="output file path, or a literal '-' for standard output")
        subp.set_defaults(func=_main_from_parquet, convert=func)

    return parser

def __add_common_args(obj):
    obj.add_argument("-v", "--verbose", action="count", default=0,
            help="Increment verbosity.  This can be specified multiple times.")
    obj.add_argument("-q", "--quiet", action="count", default=0,
            help="Decrement verbosity.  This can be specified multiple times.")

if __name__ == "__main__":
    main()
