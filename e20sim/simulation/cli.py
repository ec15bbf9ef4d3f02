"""Command line front end: load a program, simulate it, print the trace."""
import argparse
import logging
import sys

from e20sim.core.simulator import CacheSimulator, parse_cache_config
from e20sim.data.program_loader import load_program_file
from e20sim.data.stats_export import Exporter, export_chart_json, export_chart_pdf
from e20sim.simulation.report import format_cache_config, format_log_entry, format_state

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Simulate E20 cache')
    parser.add_argument('filename', help=
        'The file containing machine code, typically with .bin suffix')
    parser.add_argument('--cache', help=
        'Cache configuration: size,associativity,blocksize (for one cache) '
        'or size,associativity,blocksize,size,associativity,blocksize (for two caches). '
        'Without it the program runs uncached and the final state is printed')
    parser.add_argument('--state', action='store_true', help=
        'Print the final machine state after the cache log')
    parser.add_argument('--stats-csv', metavar='PATH', help='Write per-cache statistics as CSV')
    parser.add_argument('--stats-json', metavar='PATH', help='Write hit-rate history and statistics as JSON')
    parser.add_argument('--chart', metavar='PATH', help='Plot the hit-rate history (pdf/png/svg)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        configs = parse_cache_config(args.cache) if args.cache is not None else []
        program = load_program_file(args.filename)
        sim = CacheSimulator(configs, program,
                             callback=lambda event: print(format_log_entry(event)),
                             keep_history=bool(args.stats_json or args.chart))
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    for cache in sim.caches:
        print(format_cache_config(*cache.describe()))

    state = sim.run_all()

    if args.state or not sim.caches:
        for line in format_state(state):
            print(line)

    if args.stats_csv:
        Exporter.export_stats_csv(args.stats_csv, sim.stats)
    if args.stats_json:
        export_chart_json(sim.stats, args.stats_json)
    if args.chart:
        export_chart_pdf(sim.stats, args.chart, title=args.filename)
    logger.debug("finished after %d instructions", sim.engine.steps)
    return 0


if __name__ == '__main__':
    sys.exit(main())
