"""
Exceptions raised while reading region files.

Errors derived from ``ChunkError`` concern a single chunk: the search skips
that chunk and carries on with the rest of the region file. ``RegionError``
subclasses concern a whole file.
"""


class BlockFindError(Exception):
    pass


class ChunkError(BlockFindError):
    pass


class RegionError(BlockFindError):
    pass


class TruncatedData(ChunkError):
    """
    Raised when a read asks for more bytes than remain in a buffer.
    """


class CorruptPayload(ChunkError):
    """
    Raised when a compressed chunk stream fails its checksum or ends early.
    """


class UnsupportedCompression(ChunkError):
    def __init__(self, compression):
        super().__init__(f"Unsupported compression type {compression}")
        self.compression = compression


class MalformedTree(ChunkError):
    """
    Raised when NBT data (or the chunk structure held in it) can't be decoded.
    """


class InvalidChunkOffset(ChunkError):
    """
    Raised when a chunk's location entry or length field points outside the
    region file.
    """


class MissingExternalChunk(ChunkError):
    def __init__(self, path):
        super().__init__(f"External chunk file missing or unreadable: {path}")
        self.path = path


class InvalidRegionFileName(RegionError):
    def __init__(self, name):
        super().__init__(f"Region file must be in the format r.X.Z.mca: {name!r}")
        self.name = name


class NothingToSearch(BlockFindError):
    """
    Raised when every chunk and file of a search failed to decode.
    """


class ConfigError(BlockFindError):
    pass
