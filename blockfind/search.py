"""
Searching region files for blocks.

Each region file is scanned by its own worker. A worker shares nothing with
the others: it returns a ``FileResult`` which the coordinating thread merges
into the ``SearchReport``. Decoding errors are recorded against the chunk or
file that caused them and the scan moves on.
"""

import collections
import concurrent.futures
import dataclasses
import logging
import threading
from typing import List, Optional, Tuple

from blockfind.errors import BlockFindError, ChunkError, NothingToSearch
from blockfind.ranking import distance, rank
from blockfind.types.chunk import Chunk
from blockfind.types.region import REGION_WIDTH, RegionFile, find_region_files

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = 'minecraft'


@dataclasses.dataclass(frozen=True)
class Match:
    """
    A block found by a search. In presence mode ``count`` is the number of
    blocks with this name in the chunk and the co-ordinates are those of the
    first.
    """
    chunk_x: int
    chunk_z: int
    x: int
    y: int
    z: int
    block: str
    count: int = 1


@dataclasses.dataclass(frozen=True)
class Failure:
    path: Optional[str]
    chunk: Optional[Tuple[int, int]]
    error: Exception

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"

    def __str__(self) -> str:
        where = self.path or '(memory)'
        if self.chunk is not None:
            where = f"{where} chunk {self.chunk[0]},{self.chunk[1]}"
        return f"{where}: {self.reason}"


@dataclasses.dataclass
class FileResult:
    path: Optional[str]
    matches: List[Match] = dataclasses.field(default_factory=list)
    failures: List[Failure] = dataclasses.field(default_factory=list)
    chunks_decoded: int = 0
    chunks_skipped: int = 0


@dataclasses.dataclass
class SearchReport:
    matches: List[Match] = dataclasses.field(default_factory=list)
    failures: List[Failure] = dataclasses.field(default_factory=list)
    files_scanned: int = 0
    chunks_decoded: int = 0
    chunks_skipped: int = 0
    stopped_early: bool = False

    def add(self, result: FileResult) -> None:
        self.matches.extend(result.matches)
        self.failures.extend(result.failures)
        self.files_scanned += 1
        self.chunks_decoded += result.chunks_decoded
        self.chunks_skipped += result.chunks_skipped


def _failure_order(failure):
    # File-level failures (no chunk) sort before the chunks of that file
    chunk = failure.chunk
    return failure.path or '', chunk is not None, chunk or (0, 0)


def normalize_block_name(name: str) -> str:
    """
    Adds the default namespace to a bare block name: ``diamond_ore`` becomes
    ``minecraft:diamond_ore``.
    """
    if ':' in name:
        return name
    return f'{DEFAULT_NAMESPACE}:{name}'


class BlockMatcher:
    """
    Decides whether a block name is the one searched for. Exact matching
    compares full namespaced identifiers; substring matching accepts any
    identifier containing the target as typed.
    """

    def __init__(self, target: str, substring: bool = False):
        self.substring = substring
        self.target = target if substring else normalize_block_name(target)

    def __call__(self, name: str) -> bool:
        if self.substring:
            return self.target in name
        return name == self.target

    def __repr__(self) -> str:
        return f"BlockMatcher({self.target!r}, substring={self.substring})"


class BlockSearch:
    """
    Finds every occurrence of a block in a directory of region files.
    """

    def __init__(self, config):
        self.config = config
        self.matcher = BlockMatcher(config.block, substring=config.substring)
        self._stop = threading.Event()

    # Running -----------------------------------------------------------------

    def run(self, paths=None) -> SearchReport:
        """
        Scans the region files (by default every region file in the
        configured directory) in parallel and returns the merged report.
        """
        if paths is None:
            paths = find_region_files(self.config.path)
        logger.info("Searching %d region files for %s", len(paths), self.matcher.target)

        report = SearchReport()
        self._stop.clear()
        with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.config.workers) as executor:
            futures = [executor.submit(self.search_file, path) for path in paths]
            for future in concurrent.futures.as_completed(futures):
                report.add(future.result())
                if self._limit_reached(report.matches):
                    report.stopped_early = True
                    self._stop.set()

        report.failures.sort(key=_failure_order)
        if report.chunks_decoded == 0 and report.failures:
            raise NothingToSearch(
                f"No chunk could be decoded ({len(report.failures)} failures)")
        return report

    def ranked(self, report: SearchReport):
        """
        Returns the report's matches ordered by distance from home.
        """
        return rank(
            report.matches,
            home=self.config.home,
            max_distance=self.config.max_distance,
            metric=self.config.metric)

    def _limit_reached(self, matches):
        limit = self.config.limit
        return limit is not None and len(matches) >= limit

    # Files -------------------------------------------------------------------

    def search_file(self, path) -> FileResult:
        """
        Scans one region file. Errors are recorded in the result rather than
        raised.
        """
        result = FileResult(path)
        try:
            region = RegionFile(path)
        except (BlockFindError, OSError) as e:
            logger.debug("Skipping region file %s: %s", path, e)
            result.failures.append(Failure(path, None, e))
            return result

        with region:
            self.search_region(region, result)
        return result

    def search_region(self, region, result) -> FileResult:
        size = REGION_WIDTH * 16
        if self._out_of_range(region.x * size, region.z * size, size):
            logger.debug("Region %d,%d is beyond the maximum distance", region.x, region.z)
            return result

        logger.debug("Scanning %r", region)
        for chunk_x, chunk_z in region.list_chunks():
            if self._stop.is_set():
                logger.debug("Stopping scan of %r early", region)
                break

            position = region.chunk_position(chunk_x, chunk_z)
            if self._out_of_range(position[0] * 16, position[1] * 16, 16):
                result.chunks_skipped += 1
                continue

            try:
                root = region.load_chunk(chunk_x, chunk_z)
                if root is None:
                    continue
                chunk = Chunk.from_tag(root, expected=position)
                if not chunk.is_full and not self.config.include_partial:
                    logger.debug("Skipping chunk %d,%d with status %s",
                                 chunk.x, chunk.z, chunk.status)
                    result.chunks_skipped += 1
                    continue
                matches = list(self.search_chunk(chunk))
            except (ChunkError, OSError) as e:
                logger.debug("Skipping chunk %d,%d in %s: %s",
                             position[0], position[1], region.path, e)
                result.failures.append(Failure(region.path, position, e))
                continue

            result.chunks_decoded += 1
            result.matches.extend(matches)
            if self._limit_reached(result.matches):
                logger.debug("Found %d matches in %r, stopping", len(result.matches), region)
                self._stop.set()
                break
        return result

    # Chunks ------------------------------------------------------------------

    def search_chunk(self, chunk):
        """
        Yields the matches in a chunk: one per block in show-all mode,
        otherwise one per matching block name, at its first occurrence and
        counting every occurrence in the chunk.
        """
        firsts = {}
        counts = collections.Counter()
        for section in chunk.sections:
            indices = section.palette_indices(self.matcher)
            if not indices:
                continue

            for cell, index in section.find(indices):
                lx = cell & 15
                lz = (cell >> 4) & 15
                ly = cell >> 8
                match = Match(
                    chunk.x, chunk.z,
                    chunk.x * 16 + lx,
                    section.y * 16 + ly,
                    chunk.z * 16 + lz,
                    section.palette[index])
                if self.config.show_all:
                    yield match
                else:
                    firsts.setdefault(match.block, match)
                    counts[match.block] += 1

        for block, first in firsts.items():
            yield dataclasses.replace(first, count=counts[block])

    def _out_of_range(self, min_x, min_z, size):
        """
        Whether every column of the square starting at (min_x, min_z) lies
        further than the maximum distance from home.
        """
        max_distance = self.config.max_distance
        if max_distance is None:
            return False
        home_x, home_z = self.config.home
        nearest_x = min(max(home_x, min_x), min_x + size - 1)
        nearest_z = min(max(home_z, min_z), min_z + size - 1)
        return distance(nearest_x - home_x, nearest_z - home_z,
                        self.config.metric) > max_distance
