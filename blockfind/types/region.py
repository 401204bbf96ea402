"""
Read-only support for the Anvil region container (``.mca``). McRegion
``.mcr`` files, which converted worlds leave behind, are not read.

A region file starts with two 4 KiB tables of 1024 big-endian entries each.
The first gives every chunk's location as ``(sector_offset << 8) |
sector_count``; the second its last-modified timestamp. Chunk ``(x, z)`` uses
entry ``x + z * 32``. A chunk's sectors begin with a 4-byte length (counting
the compression byte), one compression byte, then the payload.
"""

import gzip
import logging
import os
import re
import zlib

from blockfind.errors import (
    CorruptPayload, InvalidChunkOffset, InvalidRegionFileName,
    MissingExternalChunk, UnsupportedCompression)
from blockfind.types.buffer import Buffer
from blockfind.types.nbt import TagRoot

logger = logging.getLogger(__name__)

SECTOR_SIZE = 4096
HEADER_SIZE = 2 * SECTOR_SIZE
REGION_WIDTH = 32

COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NONE = 3
COMPRESSION_EXTERNAL = 0x80

_region_file_name = re.compile(r'^r\.(-?\d+)\.(-?\d+)\.mca$')


def region_coordinates(filename):
    """
    Returns the ``(rx, rz)`` region co-ordinates encoded in a file name such
    as ``r.-1.2.mca``.
    """
    match = _region_file_name.match(os.path.basename(filename))
    if match is None:
        raise InvalidRegionFileName(filename)
    return int(match.group(1)), int(match.group(2))


def find_region_files(directory):
    """
    Returns the paths of the region files in a directory, sorted by name.
    """
    names = sorted(
        name for name in os.listdir(directory)
        if name.endswith('.mca'))
    return [os.path.join(directory, name) for name in names]


def decompress(compression, data):
    """
    Decompresses a chunk payload given its compression type.
    """
    if compression == COMPRESSION_GZIP:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise CorruptPayload(f"Bad gzip chunk data: {e}") from e
    elif compression == COMPRESSION_ZLIB:
        try:
            return zlib.decompress(data)
        except zlib.error as e:
            raise CorruptPayload(f"Bad zlib chunk data: {e}") from e
    elif compression == COMPRESSION_NONE:
        return bytes(data)
    else:
        raise UnsupportedCompression(compression)


class RegionHeader(object):
    """
    The location and timestamp tables at the start of a region file.
    ``entries`` holds ``(sector_offset, sector_count, timestamp)`` per chunk,
    in file order.
    """
    __slots__ = ('entries',)

    def __init__(self, entries=None):
        if entries is None:
            entries = [(0, 0, 0)] * (REGION_WIDTH * REGION_WIDTH)
        self.entries = entries

    @classmethod
    def from_bytes(cls, data):
        buff = Buffer(data)
        locations = buff.unpack_array('I', REGION_WIDTH * REGION_WIDTH)
        timestamps = buff.unpack_array('I', REGION_WIDTH * REGION_WIDTH)
        return cls([
            (location >> 8, location & 0xFF, timestamp)
            for location, timestamp in zip(locations, timestamps)])

    def to_bytes(self):
        locations = [(offset << 8) | (count & 0xFF) for offset, count, _ in self.entries]
        timestamps = [timestamp for _, _, timestamp in self.entries]
        return Buffer.pack('%dI' % len(locations), *locations) + \
               Buffer.pack('%dI' % len(timestamps), *timestamps)

    @staticmethod
    def index(chunk_x, chunk_z):
        return (chunk_x & 31) + (chunk_z & 31) * REGION_WIDTH

    def __getitem__(self, chunk):
        return self.entries[self.index(*chunk)]

    def __setitem__(self, chunk, entry):
        self.entries[self.index(*chunk)] = entry


class RegionFile(object):
    """
    A region file loaded into memory. ``x`` and ``z`` are the region
    co-ordinates from the file name.
    """
    def __init__(self, path):
        self.path = path
        self.directory = os.path.dirname(path)
        self.x, self.z = region_coordinates(path)
        with open(path, "rb") as fd:
            self.data = fd.read()
        self.header = self._read_header()

    @classmethod
    def from_bytes(cls, data, x=0, z=0, directory=None):
        """
        Wraps region file contents that are already in memory. External
        chunks are looked up in *directory*, if given.
        """
        obj = cls.__new__(cls)
        obj.path = None
        obj.directory = directory
        obj.x, obj.z = x, z
        obj.data = bytes(data)
        obj.header = obj._read_header()
        return obj

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return "<RegionFile %d,%d %s>" % (self.x, self.z, self.path or '(memory)')

    def close(self):
        """
        Releases the file contents.
        """
        self.data = b""

    def _read_header(self):
        if len(self.data) == 0:
            # Freshly created region files are empty
            return RegionHeader()
        if len(self.data) < HEADER_SIZE:
            raise InvalidChunkOffset(
                f"Region file is {len(self.data)} bytes, shorter than its header")
        return RegionHeader.from_bytes(self.data[:HEADER_SIZE])

    def chunk_position(self, chunk_x, chunk_z):
        """
        Returns the absolute co-ordinates of the chunk at the given local
        co-ordinates.
        """
        return self.x * REGION_WIDTH + chunk_x, self.z * REGION_WIDTH + chunk_z

    def list_chunks(self):
        """
        Returns a list of (cx, cz) tuples for all existing chunks.
        """
        result = []
        for idx, (offset, _, _) in enumerate(self.header.entries):
            if offset:
                chunk_z, chunk_x = divmod(idx, REGION_WIDTH)
                result.append((chunk_x, chunk_z))
        return result

    def read_chunk_payload(self, chunk_x, chunk_z):
        """
        Returns ``(compression, data)`` for the chunk at the given local
        co-ordinates, or None if there is no chunk there. External chunks are
        read from their ``.mcc`` file.
        """
        offset, sector_count, _ = self.header[chunk_x, chunk_z]
        if offset == 0:
            return None

        start = offset * SECTOR_SIZE
        end = start + sector_count * SECTOR_SIZE
        if offset < HEADER_SIZE // SECTOR_SIZE:
            raise InvalidChunkOffset(
                f"Chunk {chunk_x},{chunk_z} overlaps the region header (sector {offset})")
        if sector_count == 0:
            raise InvalidChunkOffset(f"Chunk {chunk_x},{chunk_z} has no sectors")
        if start + 5 > len(self.data):
            raise InvalidChunkOffset(
                f"Chunk {chunk_x},{chunk_z} starts at byte {start}, past the end "
                f"of the file ({len(self.data)} bytes)")

        buff = Buffer(self.data[start:start + 5])
        length, compression = buff.unpack('IB')
        if length == 0:
            raise InvalidChunkOffset(f"Chunk {chunk_x},{chunk_z} has zero length")
        payload_end = start + 4 + length
        if payload_end > len(self.data):
            raise InvalidChunkOffset(
                f"Chunk {chunk_x},{chunk_z} claims {length} bytes, only "
                f"{len(self.data) - start - 4} remain in the file")
        if payload_end > end:
            raise InvalidChunkOffset(
                f"Chunk {chunk_x},{chunk_z} claims {length} bytes, more than its "
                f"{sector_count} sectors")

        if compression & COMPRESSION_EXTERNAL:
            return compression & ~COMPRESSION_EXTERNAL, self._read_external(chunk_x, chunk_z)
        return compression, self.data[start + 5:payload_end]

    def _read_external(self, chunk_x, chunk_z):
        abs_x, abs_z = self.chunk_position(chunk_x, chunk_z)
        name = "c.%d.%d.mcc" % (abs_x, abs_z)
        if self.directory is None:
            raise MissingExternalChunk(name)
        path = os.path.join(self.directory, name)
        try:
            with open(path, "rb") as fd:
                return fd.read()
        except OSError as e:
            raise MissingExternalChunk(path) from e

    def load_chunk(self, chunk_x, chunk_z):
        """
        Loads the chunk at the given co-ordinates from the region file.
        The co-ordinates should range from 0 to 31. Returns a ``TagRoot``.
        If no chunk is found, returns None.
        """
        payload = self.read_chunk_payload(chunk_x, chunk_z)
        if payload is None:
            return None
        compression, data = payload
        return TagRoot.from_bytes(decompress(compression, data))

    def timestamp(self, chunk_x, chunk_z):
        """
        Returns the last-modified time of a chunk in seconds since the epoch.
        """
        return self.header[chunk_x, chunk_z][2]
