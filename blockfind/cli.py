"""
Command line front end.
"""

import argparse
import itertools
import logging
import os
import sys

from blockfind import __version__
from blockfind.config import DEFAULT_CONFIG_FILE, build_config, load_config_file
from blockfind.errors import BlockFindError, ConfigError, NothingToSearch
from blockfind.ranking import METRICS
from blockfind.search import BlockSearch
from blockfind.types.nbt import alt_repr
from blockfind.types.region import RegionFile
from blockfind.types.text_format import colorize

logger = logging.getLogger('blockfind')


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name for terminal output."""

    COLORS = {
        "DEBUG": "dark_aqua",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "dark_purple",
    }

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        color = self.COLORS.get(record.levelname)
        if color and record.levelname in formatted:
            formatted = formatted.replace(
                record.levelname, colorize(record.levelname, color), 1)
        return formatted


def setup_logging(verbose=False, color=True):
    handler = logging.StreamHandler(sys.stderr)
    fmt = "%(levelname)s: %(message)s"
    if color:
        handler.setFormatter(ColoredFormatter(fmt))
    else:
        handler.setFormatter(logging.Formatter(fmt))

    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


def build_parser():
    parser = argparse.ArgumentParser(
        prog='blockfind',
        description="Find blocks in Minecraft region files, nearest first.")
    parser.add_argument(
        'block', nargs='?',
        help="Block to search for, e.g. diamond_ore or minecraft:diamond_ore")
    parser.add_argument(
        '-p', '--path', metavar='DIR',
        help="Region file directory (e.g. %%APPDATA%%/.minecraft/saves/world/region)")
    parser.add_argument(
        '-s', '--show-all', action='store_true', default=None,
        help="Show every block rather than only the chunks containing them")
    parser.add_argument(
        '-m', '--max-distance', type=float, metavar='N',
        help="Ignore blocks further than N blocks from home")
    parser.add_argument(
        '--home', type=int, nargs=2, metavar=('X', 'Z'),
        help="Reference point distances are measured from (default 0 0)")
    parser.add_argument(
        '-c', '--config', metavar='FILE',
        help=f"TOML config file (default ./{DEFAULT_CONFIG_FILE} if present)")
    parser.add_argument(
        '--substring', action='store_true', default=None,
        help="Match every block whose name contains BLOCK")
    parser.add_argument(
        '--limit', type=int, metavar='N',
        help="Stop once N results have been found")
    parser.add_argument(
        '--workers', type=int, metavar='N',
        help="Number of region files to scan at once")
    parser.add_argument(
        '--metric', choices=sorted(METRICS),
        help="How distance is measured (default euclidean)")
    parser.add_argument(
        '--include-partial', action='store_true', default=None,
        help="Also search chunks that have not finished generating")
    parser.add_argument(
        '--dump', type=int, nargs=2, metavar=('CX', 'CZ'),
        help="Print the NBT of the chunk at chunk co-ordinates CX CZ and exit")
    parser.add_argument(
        '--no-color', action='store_true',
        help="Disable coloured output")
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help="Log progress for every file and chunk")
    parser.add_argument(
        '--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def format_result(result, show_all=False, color=True):
    position = colorize(f"{result.x} {result.y} {result.z}", 'aqua', color)
    block = colorize(result.match.block, 'gold', color)
    dist = colorize(f"[{result.distance:.1f}]", 'gray', color)
    if show_all:
        return f"{position} - {block} {dist}"
    chunk = colorize(f"chunk {result.chunk_x},{result.chunk_z}", 'dark_green', color)
    return f"{chunk} {position} - {block} ({result.match.count}) {dist}"


def dump_chunk(directory, chunk_x, chunk_z):
    """
    Returns the debug representation of a chunk's NBT, or None when the
    chunk doesn't exist.
    """
    path = os.path.join(directory, "r.%d.%d.mca" % (chunk_x >> 5, chunk_z >> 5))
    if not os.path.exists(path):
        return None
    with RegionFile(path) as region:
        root = region.load_chunk(chunk_x & 31, chunk_z & 31)
    if root is None:
        return None
    return alt_repr(root)


def main(argv=None):
    args = build_parser().parse_args(argv)
    color = not args.no_color and sys.stdout.isatty()
    setup_logging(args.verbose, color)

    try:
        file_settings = load_config_file(
            args.config or DEFAULT_CONFIG_FILE, required=args.config is not None)

        if args.dump is not None:
            directory = args.path or file_settings.get('path')
            if not directory:
                raise ConfigError("No region path provided (directory of .mca files)")
            dumped = dump_chunk(directory, *args.dump)
            if dumped is None:
                logger.error("No chunk at %d,%d", *args.dump)
                return 1
            print(dumped)
            return 0

        config = build_config(
            file_settings,
            block=args.block,
            path=args.path,
            home=args.home,
            show_all=args.show_all,
            max_distance=args.max_distance,
            substring=args.substring,
            limit=args.limit,
            workers=args.workers,
            metric=args.metric,
            include_partial=args.include_partial)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    if not os.path.isdir(config.path):
        logger.error("Invalid region path: %s", config.path)
        return 2

    search = BlockSearch(config)
    try:
        report = search.run()
    except NothingToSearch as e:
        logger.error("%s", e)
        return 1

    results = search.ranked(report)
    if config.limit is not None:
        results = itertools.islice(results, config.limit)

    shown = 0
    for result in results:
        print(format_result(result, config.show_all, color))
        shown += 1

    for failure in report.failures:
        logger.warning("Skipped %s", failure)

    summary = (f"{report.files_scanned} region files, {report.chunks_decoded} chunks "
               f"searched, {shown} results")
    if report.failures:
        summary += f", {len(report.failures)} skipped after errors"
    if report.stopped_early:
        summary += ", stopped early"
    logger.info("%s", summary)
    return 0


def run():
    try:
        sys.exit(main())
    except BlockFindError as e:
        logger.error("%s", e)
        sys.exit(1)
