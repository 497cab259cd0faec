#!/usr/bin/env python3
"""
Name: cat
Description: concatenate and print files
Author: Abigail, perlpowertools@abigail.be (Original Perl Author)
License: perl
"""

import sys
import os
import argparse
import contextlib
import functools
from typing import NamedTuple

BUFFER_SIZE = 8192
NUMBER_FORMAT = b"%6d\t"

EPILOG = """\
examples:
  %(prog)s f - g   Output f's contents, then standard input, then g's contents.
  %(prog)s         Copy standard input to standard output."""


class Options(NamedTuple):
    """The output options chosen on the command line. Never mutated."""
    number_nonblank: bool = False
    number_all: bool = False
    show_ends: bool = False
    show_tabs: bool = False
    show_nonprinting: bool = False
    squeeze_blank: bool = False
    unbuffered: bool = False

    @property
    def cooked(self) -> bool:
        """True when lines have to be split and transformed one at a time."""
        return any([self.number_nonblank, self.number_all, self.show_ends,
                    self.show_tabs, self.show_nonprinting, self.squeeze_blank])


class RunState:
    """Line counter and squeeze flag shared by every input of one invocation."""
    def __init__(self):
        self.line_number = 1
        self.prev_was_blank = False


class ReadError(Exception):
    """An I/O failure while reading a source that was opened successfully."""
    def __init__(self, error: OSError):
        super().__init__(error.strerror or str(error))
        self.error = error


def caret_notation(val: int) -> bytes:
    """Renders a 7-bit byte in ^X notation, leaving printable bytes alone."""
    if val < 0x20:
        return b'^' + bytes([val + 0x40])
    if val == 0x7f:
        return b'^?'
    return bytes([val])


@functools.lru_cache(maxsize=None)
def render_table(show_tabs: bool, show_nonprinting: bool) -> tuple:
    """
    Builds the replacement for each of the 256 byte values.
    """
    table = []
    for val in range(256):
        if val == 0x09:
            table.append(b'^I' if show_tabs else b'\t')
        elif val == 0x0a or not show_nonprinting:
            table.append(bytes([val]))
        elif val >= 0x80:
            # The low 7 bits always get the control rule, TAB included.
            table.append(b'M-' + caret_notation(val & 0x7f))
        else:
            table.append(caret_notation(val))
    return tuple(table)


def render_bytes(data: bytes, opts: Options) -> bytes:
    """
    Applies the -t and -v character transformations to a run of bytes.
    """
    if not (opts.show_tabs or opts.show_nonprinting):
        return data
    table = render_table(opts.show_tabs, opts.show_nonprinting)
    return b"".join(table[val] for val in data)


def format_line(line: bytes, opts: Options, state: RunState):
    """
    Renders one input line, or returns None when -s suppresses it.
    The run state is updated in place.
    """
    is_blank = line == b'\n'

    # Handle -s (squeeze blank lines)
    if opts.squeeze_blank and is_blank and state.prev_was_blank:
        return None
    state.prev_was_blank = is_blank

    prefix = b""
    # Handle -n and -b (line numbering)
    if opts.number_all or (opts.number_nonblank and not is_blank):
        prefix = NUMBER_FORMAT % state.line_number
        state.line_number += 1

    if line.endswith(b'\n'):
        body, newline = line[:-1], b'\n'
    else:
        body, newline = line, b''

    body = render_bytes(body, opts)
    if opts.show_ends:
        body += b'$'
    return prefix + body + newline


def cat_stream(stream, out, opts: Options, state: RunState):
    """
    Copies one opened source to out. Read failures are raised as ReadError;
    write failures propagate untouched.
    """
    if not opts.cooked:
        # --- Fast Path (Raw Mode) ---
        # read1() hands back whatever is available, so a slow pipe
        # is passed along as it arrives.
        while True:
            try:
                chunk = stream.read1(BUFFER_SIZE)
            except OSError as e:
                raise ReadError(e) from e
            if not chunk:
                break
            out.write(chunk)
            out.flush()
        return

    # --- Slow Path (Cooked Mode) ---
    while True:
        try:
            line = stream.readline()
        except OSError as e:
            raise ReadError(e) from e
        if not line:
            break
        rendered = format_line(line, opts, state)
        if rendered is not None:
            out.write(rendered)
            out.flush()


def open_source(path: str):
    """
    Opens a named file for binary reading; '-' is standard input,
    which is left open when the with block ends.
    """
    if path == '-':
        return contextlib.nullcontext(sys.stdin.buffer)
    return open(path, 'rb')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Concatenate FILE(s) to standard output. With no FILE, "
                    "or when FILE is -, read standard input.",
        usage="%(prog)s [-bEenstTuv] [file ...]",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument('-h', '-?', '--help', action='help', help='Display this help and exit.')
    parser.add_argument('-b', dest='number_nonblank', action='store_true',
                        help='Number non-empty output lines, overrides -n.')
    parser.add_argument('-E', '-e', dest='show_ends', action='store_true',
                        help='Display $ at end of each line.')
    parser.add_argument('-n', dest='number_all', action='store_true', help='Number all output lines.')
    parser.add_argument('-s', dest='squeeze_blank', action='store_true',
                        help='Suppress repeated empty output lines.')
    parser.add_argument('-t', '-T', dest='show_tabs', action='store_true',
                        help='Display TAB characters as ^I.')
    parser.add_argument('-u', dest='unbuffered', action='store_true',
                        help='Ignored, for compatibility with other cat implementations.')
    parser.add_argument('-v', dest='show_nonprinting', action='store_true',
                        help='Use ^ and M- notation, except for LFD and TAB.')

    parser.add_argument('files', nargs='*', help='Files to process. Reads from stdin if none are given.')
    return parser


def parse_args(argv=None):
    """Returns the Options and the ordered list of sources to read."""
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    # Everything after '--' is a file name, even if it looks like a flag.
    trailing = []
    if '--' in argv:
        split = argv.index('--')
        argv, trailing = argv[:split], argv[split + 1:]

    # Flags may appear anywhere among the file names.
    args = build_parser().parse_intermixed_args(argv)

    # The -b option overrides -n
    if args.number_nonblank:
        args.number_all = False

    opts = Options(
        number_nonblank=args.number_nonblank,
        number_all=args.number_all,
        show_ends=args.show_ends,
        show_tabs=args.show_tabs,
        show_nonprinting=args.show_nonprinting,
        squeeze_blank=args.squeeze_blank,
        unbuffered=args.unbuffered,
    )
    return opts, (args.files + trailing) or ['-']


def main(argv=None):
    """Parses arguments and runs the cat logic."""
    opts, sources = parse_args(argv)
    program_name = os.path.basename(sys.argv[0])
    out = sys.stdout.buffer
    state = RunState()
    exit_status = 0

    try:
        for path in sources:
            try:
                source = open_source(path)
            except OSError as e:
                out.flush()
                print(f"{program_name}: {path}: {e.strerror}", file=sys.stderr)
                exit_status = 1
                continue

            with source as stream:
                try:
                    cat_stream(stream, out, opts, state)
                except ReadError as e:
                    out.flush()
                    print(f"{program_name}: {path}: read error: {e}", file=sys.stderr)
                    exit_status = 1
        out.flush()

    except BrokenPipeError:
        # The reader went away.
        silence_stdout()
        sys.exit(1)
    except OSError as e:
        print(f"{program_name}: write error: {e.strerror or e}", file=sys.stderr)
        silence_stdout()
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    sys.exit(exit_status)


def silence_stdout():
    """Points stdout at /dev/null so the interpreter's final flush cannot fail again."""
    null_fileno = os.open(os.devnull, os.O_WRONLY)
    os.dup2(null_fileno, sys.stdout.fileno())


if __name__ == "__main__":
    main()
