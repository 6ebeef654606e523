"""
Replay a memory trace against a set-associative LRU cache and report hits, misses
and evictions. The command line should be

    csim [-hv] -s <s> -E <E> -b <b> -t <tracefile>

where
• -s <s>: number of set index bits (the cache has 2^s sets)
• -E <E>: associativity, the number of lines per set
• -b <b>: number of block offset bits (blocks are 2^b bytes)
• -t <tracefile>: valgrind trace to replay
• -v: print the outcome of every access
For example, a 16 set, direct-mapped cache with 16 byte blocks:

    csim -v -s 4 -E 1 -b 4 -t traces/yi.trace
"""
import argparse
import logging
import sys
from constants import RESULTS_FILE
from errors import ConfigError, InputSourceError
from simulation import new_simulation
from trace_reader import read_trace

LOGGER = logging.getLogger("csim")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csim",
        description="Set-associative LRU cache simulator for valgrind memory traces.",
    )
    parser.add_argument("-v", dest="verbose", action="store_true",
                        help="print the outcome of every access")
    parser.add_argument("-s", dest="set_index_bits", type=int, required=True, metavar="<s>",
                        help="number of set index bits (2^s sets)")
    parser.add_argument("-E", dest="lines_per_set", type=int, required=True, metavar="<E>",
                        help="number of lines per set")
    parser.add_argument("-b", dest="block_offset_bits", type=int, required=True, metavar="<b>",
                        help="number of block offset bits (2^b byte blocks)")
    parser.add_argument("-t", dest="trace_file", required=True, metavar="<tracefile>",
                        help="trace file to replay")
    parser.add_argument("-r", dest="results_file", nargs="?", const=RESULTS_FILE, metavar="<results-file>",
                        help=f"also write 'hits misses evictions' to this file (default {RESULTS_FILE})")
    return parser

def print_summary(hits: int, misses: int, evictions: int, results_file: str = None):
    print(f"hits:{hits} misses:{misses} evictions:{evictions}")
    if results_file is not None:
        with open(results_file, "w") as f:
            f.write(f"{hits} {misses} {evictions}\n")

def print_event(event):
    if event.results:
        print(event.describe())

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    LOGGER.info(f"Trace file: {args.trace_file}")
    try:
        simulation = new_simulation(args.set_index_bits, args.block_offset_bits, args.lines_per_set)
    except ConfigError as e:
        print(f"csim: invalid cache configuration: {e}", file=sys.stderr)
        return 1
    LOGGER.info(f"Number of sets: {simulation.config.num_sets}")

    with simulation:
        try:
            hits, misses, evictions = simulation.run_trace(
                read_trace(args.trace_file),
                on_event=print_event if args.verbose else None,
            )
        except InputSourceError as e:
            print(f"csim: {e}", file=sys.stderr)
            return 1

    print_summary(hits, misses, evictions, args.results_file)
    return 0

if __name__ == "__main__":
    sys.exit(main())
