"""
Replays a valgrind memory trace against an LRU set-associative cache and
reports hits, misses and evictions.
The command line should be
csim [-hv] -s <s> -E <E> -b <b> -t <tracefile>
where
• "s" is the number of set index bits (2^s sets)
• "E" is the number of lines per set
• "b" is the number of block offset bits (2^b byte blocks)
• "tracefile" is the valgrind trace to replay
For example, to replay yi.trace on a cache with 16 sets, 1 line per set and
16 byte blocks, the command will be
csim -s 4 -E 1 -b 4 -t traces/yi.trace
"""
import argparse
import logging
from simulation import Simulation
from cache import CacheConfig, ConfigurationError
from instruction import TraceParseError
from constants import LOGGER_NAME, RESULTS_FILE

LOGGER = logging.getLogger(LOGGER_NAME)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csim",
        description="Replay a memory trace against an LRU set-associative cache.",
    )
    parser.add_argument("-v", dest="verbose", action="store_true", help="print the outcome of every trace record")
    parser.add_argument("-s", dest="set_index_bits", type=int, required=True, metavar="<s>", help="number of set index bits")
    parser.add_argument("-E", dest="lines_per_set", type=int, required=True, metavar="<E>", help="number of lines per set")
    parser.add_argument("-b", dest="block_offset_bits", type=int, required=True, metavar="<b>", help="number of block offset bits")
    parser.add_argument("-t", dest="trace_file", required=True, metavar="<tracefile>", help="valgrind trace to replay")
    parser.add_argument(
        "--results-file",
        nargs="?",
        const=RESULTS_FILE,
        default=None,
        metavar="PATH",
        help=f"also write 'hits misses evictions' to PATH (default {RESULTS_FILE})",
    )
    return parser

def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, format="%(message)s")

    LOGGER.info(
        f"Command arguments: s - {args.set_index_bits}, E - {args.lines_per_set}, "
        f"b - {args.block_offset_bits}, trace file - {args.trace_file}"
    )

    try:
        config = CacheConfig(args.set_index_bits, args.lines_per_set, args.block_offset_bits)
        simulation = Simulation(config, args.trace_file)
        simulation.simulate()
    except ConfigurationError as e:
        LOGGER.error(f"Invalid cache configuration: {e}")
        return 1
    except TraceParseError as e:
        LOGGER.error(f"Malformed trace {args.trace_file}, {e}")
        return 1
    except OSError as e:
        LOGGER.error(f"Cannot read trace file {args.trace_file!r}: {e.strerror or e}")
        return 1

    simulation.print_final_outputs()
    if args.results_file:
        simulation.write_results(args.results_file)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
