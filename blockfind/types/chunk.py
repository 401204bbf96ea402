"""
Decoding of block storage from chunk NBT.

Chunk NBT has changed layout several times. Each layout is handled by one
``ChunkFormat`` and the format is picked once per chunk from its
``DataVersion``:

====================  ==============  ============================================
format                DataVersion     layout
====================  ==============  ============================================
``LegacyFormat``      < 1451          ``Level.Sections[].Blocks`` numeric ids
``PalettedFormat``    1451 - 2528     ``Level.Sections[].Palette/BlockStates``,
                                      indices may straddle longs
``PalettedFormat``    2529 - 2843     as above, indices never straddle longs
``ModernFormat``      >= 2844         ``sections[].block_states.palette/data``
====================  ==============  ============================================
"""

import logging
import math

from blockfind.errors import MalformedTree
from blockfind.types.legacy_blocks import legacy_block_name
from blockfind.types.nbt import (
    TagByteArray, TagCompound, TagList, TagLongArray, TagRoot, TagString,
    TagByte, TagShort, TagInt, TagLong)
from blockfind.types.packed import PackedArray

logger = logging.getLogger(__name__)

SECTION_VOLUME = 16 * 16 * 16

_int_kinds = (TagByte, TagShort, TagInt, TagLong)

# Generation statuses of a finished chunk. 1.13 had no single final status:
# chunks end up as "fullchunk" or "postprocessed". 1.14 (DataVersion 1901)
# introduced "full".
_finished_statuses = [
    (1901, frozenset(['full'])),
    (None, frozenset(['fullchunk', 'postprocessed'])),
]


def finished_statuses(data_version):
    """
    Returns the statuses that mark a chunk of the given data version as
    fully generated.
    """
    for min_version, statuses in _finished_statuses:
        if min_version is None or (
                data_version is not None and data_version >= min_version):
            return statuses


def bits_for_palette(palette_length, minimum=4):
    """
    Returns the number of bits used to store one palette index.
    """
    if palette_length <= 1:
        return minimum
    return max(minimum, math.ceil(math.log2(palette_length)))


def _expect(tag, kinds, what):
    if not isinstance(tag, kinds):
        raise MalformedTree(f"{what} has unexpected type {type(tag).__name__}")
    return tag


class Section(object):
    """
    One 16x16x16 part of a chunk. ``states`` holds a palette index for each
    cell, in YZX order.
    """
    __slots__ = ('y', 'palette', 'states')

    def __init__(self, y, palette, states):
        if len(states) != SECTION_VOLUME:
            raise MalformedTree(
                f"Section {y} has {len(states)} cells, expected {SECTION_VOLUME}")
        self.y = y
        self.palette = tuple(palette)
        self.states = states

    def __repr__(self):
        return "<Section y=%d palette=%r>" % (self.y, self.palette)

    def palette_indices(self, predicate):
        """
        Returns the set of palette indices whose block name satisfies
        *predicate*.
        """
        return frozenset(
            index for index, name in enumerate(self.palette) if predicate(name))

    def find(self, indices):
        """
        Yields ``(cell, palette_index)`` for every cell whose palette index
        is in *indices*. Raises ``MalformedTree`` on an index past the end of
        the palette.
        """
        palette_length = len(self.palette)
        for cell, value in enumerate(self.states):
            if value >= palette_length:
                raise MalformedTree(
                    f"Section {self.y} cell {cell} refers to palette entry "
                    f"{value} of {palette_length}")
            if value in indices:
                yield cell, value


# Formats ---------------------------------------------------------------------

class ChunkFormat(object):
    """
    Locates the parts of a chunk's NBT for one range of data versions.
    """
    name = None
    level_path = 'Level'
    sections_path = 'Sections'

    def level(self, body):
        if self.level_path is None:
            return body
        level = body.get_path(self.level_path)
        if level is None:
            raise MalformedTree(f"Chunk has no {self.level_path!r} compound")
        return _expect(level, TagCompound, self.level_path)

    def section_tags(self, level):
        sections = level.get_path(self.sections_path)
        if sections is None:
            return []
        _expect(sections, TagList, self.sections_path)
        return [_expect(tag, TagCompound, 'Section') for tag in sections.value]

    def decode_section(self, tag):
        raise NotImplementedError

    def __repr__(self):
        return "<%s>" % self.name


class LegacyFormat(ChunkFormat):
    """
    Numeric block ids in a byte array, with an optional nibble array holding
    the high 4 bits of each id.
    """
    name = 'legacy'

    def decode_section(self, tag):
        blocks = tag.get('Blocks')
        if blocks is None:
            return None
        _expect(blocks, TagByteArray, 'Blocks')
        y = _expect(tag.at_path('Y'), _int_kinds, 'Y').value

        ids = list(blocks.value)
        if len(ids) != SECTION_VOLUME:
            raise MalformedTree(
                f"Section {y} has {len(ids)} block ids, expected {SECTION_VOLUME}")

        add = tag.get('Add')
        if add is not None:
            add = list(_expect(add, TagByteArray, 'Add').value)
            if len(add) != SECTION_VOLUME // 2:
                raise MalformedTree(f"Section {y} has a malformed Add array")
            ids = [
                block_id | (((add[cell >> 1] >> ((cell & 1) * 4)) & 0xF) << 8)
                for cell, block_id in enumerate(ids)]

        palette = []
        lookup = {}
        states = []
        for block_id in ids:
            index = lookup.get(block_id)
            if index is None:
                name = legacy_block_name(block_id)
                if name in palette:
                    index = palette.index(name)
                else:
                    index = len(palette)
                    palette.append(name)
                lookup[block_id] = index
            states.append(index)

        return Section(y, palette, states)


class PalettedFormat(ChunkFormat):
    """
    A palette of block state compounds plus a long array of packed indices.
    """
    palette_path = 'Palette'
    states_path = 'BlockStates'

    def __init__(self, aligned):
        self.aligned = aligned
        self.name = 'paletted' if aligned else 'paletted-compact'

    def decode_section(self, tag):
        palette = tag.get_path(self.palette_path)
        if palette is None:
            return None
        _expect(palette, TagList, self.palette_path)
        y = _expect(tag.at_path('Y'), _int_kinds, 'Y').value

        names = []
        for entry in palette.value:
            name = _expect(entry, TagCompound, 'Palette entry').at_path('Name')
            names.append(_expect(name, TagString, 'Name').value)
        if not names:
            raise MalformedTree(f"Section {y} has an empty palette")

        data = tag.get_path(self.states_path)
        if data is None:
            if len(names) > 1:
                raise MalformedTree(
                    f"Section {y} has {len(names)} palette entries but no "
                    f"{self.states_path}")
            return Section(y, names, [0] * SECTION_VOLUME)
        _expect(data, TagLongArray, self.states_path)

        bits = bits_for_palette(len(names))
        expected = PackedArray.sector_count(SECTION_VOLUME, bits, 64, self.aligned)
        if len(data.value) != expected:
            raise MalformedTree(
                f"Section {y} has {len(data.value)} longs of block states, "
                f"expected {expected} for {bits}-bit indices")

        states = PackedArray.from_sectors(
            data.value.storage, SECTION_VOLUME, bits, 64, self.aligned)
        return Section(y, names, states)


class ModernFormat(PalettedFormat):
    """
    Sections at the root of the chunk, block storage under ``block_states``.
    ``data`` is omitted when the palette has a single entry.
    """
    name = 'modern'
    level_path = None
    sections_path = 'sections'
    palette_path = 'block_states.palette'
    states_path = 'block_states.data'

    def __init__(self):
        super().__init__(aligned=True)
        self.name = 'modern'


_formats = [
    (2844, ModernFormat()),
    (2529, PalettedFormat(aligned=True)),
    (1451, PalettedFormat(aligned=False)),
    (None, LegacyFormat()),
]


def chunk_format(data_version):
    """
    Returns the ``ChunkFormat`` used by chunks of the given data version.
    ``None`` means the chunk predates data versions.
    """
    for min_version, fmt in _formats:
        if min_version is None or (
                data_version is not None and data_version >= min_version):
            return fmt


# Chunks ----------------------------------------------------------------------

class Chunk(object):
    """
    The block storage of one chunk column. ``x`` and ``z`` are absolute chunk
    co-ordinates.
    """
    __slots__ = ('x', 'z', 'data_version', 'status', 'sections')

    def __init__(self, x, z, sections, data_version=None, status=None):
        self.x = x
        self.z = z
        self.sections = sections
        self.data_version = data_version
        self.status = status

    def __repr__(self):
        return "<Chunk x=%d z=%d data_version=%r sections=%d>" % (
            self.x, self.z, self.data_version, len(self.sections))

    @property
    def is_full(self):
        """
        Whether world generation has finished for this chunk. Chunks saved
        before generation status existed count as finished.
        """
        if self.status is None:
            return True
        return self.status in finished_statuses(self.data_version)

    @classmethod
    def from_tag(cls, root, expected=None):
        """
        Decodes a chunk from its NBT. *expected* is the ``(x, z)`` implied by
        the chunk's position in its region file; it is used when the NBT
        lacks co-ordinates and logged when it disagrees with them.
        """
        body = root.body if isinstance(root, TagRoot) else root
        _expect(body, TagCompound, 'Chunk root')

        try:
            data_version = body.get('DataVersion')
            if data_version is not None:
                data_version = _expect(data_version, _int_kinds, 'DataVersion').value
            fmt = chunk_format(data_version)
            level = fmt.level(body)

            x, z = cls._position(level, expected)

            status = level.get('Status')
            if status is not None:
                status = _expect(status, TagString, 'Status').value
                status = status.split(':', 1)[-1]

            sections = []
            for tag in fmt.section_tags(level):
                section = fmt.decode_section(tag)
                if section is not None:
                    sections.append(section)
        except (KeyError, IndexError, SyntaxError) as e:
            raise MalformedTree(f"Chunk is missing data: {e}") from e

        sections.sort(key=lambda section: section.y)
        logger.debug("Decoded chunk %d,%d as %s with %d sections",
                     x, z, fmt, len(sections))
        return cls(x, z, sections, data_version, status)

    @staticmethod
    def _position(level, expected):
        x_tag = level.get('xPos')
        z_tag = level.get('zPos')
        if x_tag is None or z_tag is None:
            if expected is None:
                raise MalformedTree("Chunk has no xPos/zPos")
            return expected

        x = _expect(x_tag, _int_kinds, 'xPos').value
        z = _expect(z_tag, _int_kinds, 'zPos').value
        if expected is not None and (x, z) != tuple(expected):
            logger.warning(
                "Chunk stored at %d,%d claims to be at %d,%d",
                expected[0], expected[1], x, z)
        return x, z
