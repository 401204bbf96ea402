"""
Builders for synthetic chunk NBT and region files.
"""
import collections
import gzip
import os
import zlib

from blockfind.types.buffer import Buffer
from blockfind.types.chunk import bits_for_palette
from blockfind.types.nbt import (
    TagByte, TagByteArray, TagCompound, TagInt, TagList, TagLongArray,
    TagRoot, TagString)
from blockfind.types.packed import PackedArray
from blockfind.types.region import RegionHeader, SECTOR_SIZE

TIMESTAMP = 1700000000


def compound(**items):
    return TagCompound(collections.OrderedDict(items))


def _long_array(states, bits, aligned):
    packed = PackedArray.from_int_list(states, bits, 64, aligned)
    return TagLongArray(PackedArray(packed.storage, len(packed.storage), 64, 64))


def _palette(names):
    return TagList([compound(Name=TagString(name)) for name in names])


def modern_section(y, palette, states=None):
    block_states = collections.OrderedDict(palette=_palette(palette))
    if len(palette) > 1:
        block_states['data'] = _long_array(states, bits_for_palette(len(palette)), True)
    return compound(Y=TagByte(y), block_states=TagCompound(block_states))


def modern_chunk(x, z, sections, data_version=3465, status='minecraft:full'):
    body = collections.OrderedDict()
    body['DataVersion'] = TagInt(data_version)
    body['xPos'] = TagInt(x)
    body['zPos'] = TagInt(z)
    if status is not None:
        body['Status'] = TagString(status)
    body['sections'] = TagList(sections, TagCompound)
    return TagRoot.from_body(TagCompound(body))


def paletted_section(y, palette, states, aligned=True):
    return compound(
        Y=TagByte(y),
        Palette=_palette(palette),
        BlockStates=_long_array(states, bits_for_palette(len(palette)), aligned))


def legacy_section(y, blocks, add=None):
    section = compound(Y=TagByte(y), Blocks=TagByteArray.from_int_list(blocks))
    if add is not None:
        section.value['Add'] = TagByteArray.from_int_list(add)
    return section


def level_chunk(x, z, sections, data_version=None, status=None):
    level = collections.OrderedDict()
    level['xPos'] = TagInt(x)
    level['zPos'] = TagInt(z)
    if status is not None:
        level['Status'] = TagString(status)
    level['Sections'] = TagList(sections, TagCompound)
    body = collections.OrderedDict()
    if data_version is not None:
        body['DataVersion'] = TagInt(data_version)
    body['Level'] = TagCompound(level)
    return TagRoot.from_body(TagCompound(body))


def single_block_states(cell, index=1):
    states = [0] * 4096
    states[cell] = index
    return states


def compress(data, compression=2):
    if compression == 1:
        return gzip.compress(data)
    if compression == 2:
        return zlib.compress(data)
    return data


def chunk_payload(root, compression=2):
    """
    Returns the bytes stored at the start of a chunk's sectors.
    """
    data = compress(root.to_bytes(), compression)
    return Buffer.pack('IB', len(data) + 1, compression) + data


def build_region(chunks, compression=2):
    """
    Builds region file bytes. *chunks* maps local ``(x, z)`` to a ``TagRoot``
    or to raw payload bytes (length, compression byte and data).
    """
    header = RegionHeader()
    body = b""
    sector = 2
    for position, chunk in chunks.items():
        if isinstance(chunk, bytes):
            payload = chunk
        else:
            payload = chunk_payload(chunk, compression)
        sectors = max(1, -(-len(payload) // SECTOR_SIZE))
        body += payload.ljust(sectors * SECTOR_SIZE, b"\x00")
        header[position] = (sector, sectors, TIMESTAMP)
        sector += sectors
    return header.to_bytes() + body


def write_region(directory, rx, rz, chunks, compression=2):
    path = os.path.join(str(directory), "r.%d.%d.mca" % (rx, rz))
    with open(path, "wb") as fd:
        fd.write(build_region(chunks, compression))
    return path
