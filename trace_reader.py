"""
Reader for valgrind --tool=lackey style memory traces.

Each line holds a kind letter, a hexadecimal address and a decimal size:

    I 0400d7d4,8
     M 0421c7f0,4
     L 04f6b868,8
     S 7ff0005c8,8

Data accesses are indented by one space, instruction fetches are not.
"""
from typing import Iterator
from constants import MAX_ADDRESS
from errors import InputSourceError, MalformedRecordError
from instruction import AccessKind, AccessRecord
import logging

LOGGER = logging.getLogger("csim")

def parse_trace_line(line: str, lineno: int = None) -> AccessRecord:
    fields = line.split(None, 1)
    if len(fields) != 2:
        raise MalformedRecordError(f"expected '<kind> <address>,<size>', got {line.strip()!r}", lineno)
    kind_str, rest = fields
    try:
        kind = AccessKind(kind_str)
    except ValueError:
        raise MalformedRecordError(f"unknown access kind {kind_str!r}", lineno) from None

    addr_str, sep, size_str = rest.strip().partition(",")
    if not sep:
        raise MalformedRecordError(f"missing ',<size>' in {line.strip()!r}", lineno)
    try:
        address = int(addr_str.strip(), 16)
    except ValueError:
        raise MalformedRecordError(f"bad hexadecimal address {addr_str!r}", lineno) from None
    try:
        size = int(size_str.strip(), 10)
    except ValueError:
        raise MalformedRecordError(f"bad size {size_str!r}", lineno) from None

    if address < 0 or address > MAX_ADDRESS:
        raise MalformedRecordError(f"address {addr_str} does not fit in 64 bits", lineno)
    if size <= 0:
        raise MalformedRecordError(f"size must be positive, got {size}", lineno)
    return AccessRecord(kind, address, size)

def read_trace(path: str) -> Iterator[AccessRecord]:
    """
    Yield the records of a trace file in order.
    Malformed lines are logged and skipped, the rest of the file is still read.
    """
    try:
        f = open(path)
    except OSError as e:
        raise InputSourceError(f"cannot open trace file {path}: {e.strerror}") from e

    with f:
        try:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    yield parse_trace_line(line, lineno)
                except MalformedRecordError as e:
                    LOGGER.warning(f"Skipping malformed record in {path}: {e}")
        except (OSError, UnicodeDecodeError) as e:
            raise InputSourceError(f"cannot read trace file {path}: {e}") from e
