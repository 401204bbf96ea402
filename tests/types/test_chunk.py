import logging

import pytest

from blockfind.errors import MalformedTree
from blockfind.types.chunk import *
from blockfind.types.nbt import TagCompound, TagInt, TagList, TagLongArray, TagString
from blockfind.types.packed import PackedArray

from helpers import (
    compound, legacy_section, level_chunk, modern_chunk, modern_section,
    paletted_section, single_block_states)


def test_bits_for_palette():
    assert bits_for_palette(1) == 4
    assert bits_for_palette(2) == 4
    assert bits_for_palette(16) == 4
    assert bits_for_palette(17) == 5
    assert bits_for_palette(33) == 6
    assert bits_for_palette(300) == 9


def test_chunk_format_selection():
    assert chunk_format(None).name == 'legacy'
    assert chunk_format(1343).name == 'legacy'
    assert chunk_format(1451).name == 'paletted-compact'
    assert chunk_format(2528).name == 'paletted-compact'
    assert chunk_format(2529).name == 'paletted'
    assert chunk_format(2843).name == 'paletted'
    assert chunk_format(2844).name == 'modern'
    assert chunk_format(3953).name == 'modern'


def test_single_entry_palette_without_data():
    root = modern_chunk(0, 0, [modern_section(0, ["minecraft:stone"])])
    section, = Chunk.from_tag(root).sections
    assert section.palette == ("minecraft:stone",)
    assert list(section.states) == [0] * 4096


def test_single_entry_palette_with_data():
    data = TagLongArray(PackedArray([0] * 256, 256, 64, 64))
    section_tag = compound(
        Y=TagInt(2),
        block_states=compound(
            palette=TagList([compound(Name=TagString("minecraft:air"))]),
            data=data))
    section, = Chunk.from_tag(modern_chunk(0, 0, [section_tag])).sections
    assert section.states.value_width == 4
    assert set(section.states) == {0}


def test_seventeen_entry_palette_uses_five_bits():
    palette = ["minecraft:block_%d" % i for i in range(17)]
    states = [i % 17 for i in range(4096)]
    root = modern_chunk(0, 0, [modern_section(-4, palette, states)])
    section, = Chunk.from_tag(root).sections
    assert section.states.value_width == 5
    assert len(section.states.storage) == 342
    assert list(section.states) == states


def test_compact_paletted_format():
    palette = ["minecraft:block_%d" % i for i in range(20)]
    states = [(i * 3) % 20 for i in range(4096)]
    root = level_chunk(1, 2, [paletted_section(5, palette, states, aligned=False)],
                       data_version=2230, status="full")
    chunk = Chunk.from_tag(root)
    section, = chunk.sections
    assert not section.states.aligned
    assert list(section.states) == states
    assert (chunk.x, chunk.z) == (1, 2)
    assert chunk.is_full


def test_aligned_paletted_format():
    palette = ["minecraft:air", "minecraft:diamond_ore", "minecraft:stone"]
    states = single_block_states(100, 1)
    root = level_chunk(0, 0, [paletted_section(0, palette, states)], data_version=2586)
    section, = Chunk.from_tag(root).sections
    assert section.states.aligned
    assert section.states[100] == 1
    assert list(section.find({1})) == [(100, 1)]


def test_wrong_storage_length():
    palette = ["minecraft:block_%d" % i for i in range(20)]
    states = [0] * 4096
    # Compact storage where aligned storage is expected
    root = level_chunk(0, 0, [paletted_section(0, palette, states, aligned=False)],
                       data_version=2586)
    with pytest.raises(MalformedTree):
        Chunk.from_tag(root)


def test_missing_data_for_multi_entry_palette():
    section_tag = compound(
        Y=TagInt(0),
        block_states=compound(palette=TagList([
            compound(Name=TagString("minecraft:air")),
            compound(Name=TagString("minecraft:stone")),
        ])))
    with pytest.raises(MalformedTree):
        Chunk.from_tag(modern_chunk(0, 0, [section_tag]))


def test_palette_index_out_of_range():
    section = Section(0, ["minecraft:air", "minecraft:stone"], [0] * 4095 + [5])
    with pytest.raises(MalformedTree):
        list(section.find({1}))


def test_section_must_have_4096_cells():
    with pytest.raises(MalformedTree):
        Section(0, ["minecraft:air"], [0] * 16)


def test_sections_without_blocks_are_skipped():
    light_only = compound(Y=TagInt(-5))
    root = modern_chunk(0, 0, [
        modern_section(3, ["minecraft:stone"]),
        light_only,
        modern_section(-1, ["minecraft:air"]),
    ])
    chunk = Chunk.from_tag(root)
    assert [section.y for section in chunk.sections] == [-1, 3]


def test_missing_sections():
    root = modern_chunk(0, 0, [])
    del root.body.value["sections"]
    assert Chunk.from_tag(root).sections == []


def test_legacy_section():
    blocks = [0] * 4096
    blocks[0] = 56
    blocks[1] = 8
    blocks[2] = 9
    root = level_chunk(3, 4, [legacy_section(2, blocks)])
    chunk = Chunk.from_tag(root)
    section, = chunk.sections
    assert chunk.data_version is None
    assert chunk.is_full
    assert section.y == 2
    assert set(section.palette) == {
        "minecraft:air", "minecraft:diamond_ore", "minecraft:water"}
    assert section.palette[section.states[0]] == "minecraft:diamond_ore"
    assert section.states[1] == section.states[2]


def test_legacy_add_nibbles():
    blocks = [0] * 4096
    blocks[1] = 1
    add = [0] * 2048
    add[0] = 0x10
    root = level_chunk(0, 0, [legacy_section(0, blocks, add)])
    section, = Chunk.from_tag(root).sections
    assert section.palette[section.states[0]] == "minecraft:air"
    assert section.palette[section.states[1]] == "legacy:257"


def test_legacy_unsigned_ids():
    blocks = [0] * 4096
    blocks[0] = -1
    section, = Chunk.from_tag(level_chunk(0, 0, [legacy_section(0, blocks)])).sections
    assert section.palette[section.states[0]] == "minecraft:structure_block"


def test_status():
    chunk = Chunk.from_tag(modern_chunk(0, 0, [], status="minecraft:features"))
    assert chunk.status == "features"
    assert not chunk.is_full
    chunk = Chunk.from_tag(modern_chunk(0, 0, [], status="minecraft:full"))
    assert chunk.status == "full"
    assert chunk.is_full


def test_position_mismatch_is_logged(caplog):
    root = modern_chunk(5, 6, [])
    with caplog.at_level(logging.WARNING, logger="blockfind.types.chunk"):
        chunk = Chunk.from_tag(root, expected=(7, 8))
    assert (chunk.x, chunk.z) == (5, 6)
    assert "claims to be at 5,6" in caplog.text


def test_position_from_container():
    root = modern_chunk(5, 6, [])
    del root.body.value["xPos"]
    chunk = Chunk.from_tag(root, expected=(7, 8))
    assert (chunk.x, chunk.z) == (7, 8)
    with pytest.raises(MalformedTree):
        Chunk.from_tag(root)


def test_root_must_be_compound():
    with pytest.raises(MalformedTree):
        Chunk.from_tag(TagInt(3))


def test_missing_level():
    with pytest.raises(MalformedTree):
        Chunk.from_tag(TagCompound({u"DataVersion": TagInt(1343)}))


def test_palette_entry_without_name():
    section_tag = compound(
        Y=TagInt(0),
        block_states=compound(palette=TagList([compound(Properties=compound())])))
    with pytest.raises(MalformedTree):
        Chunk.from_tag(modern_chunk(0, 0, [section_tag]))


def test_finished_statuses_by_version():
    assert finished_statuses(1631) == {"fullchunk", "postprocessed"}
    assert finished_statuses(None) == {"fullchunk", "postprocessed"}
    assert finished_statuses(1901) == {"full"}
    assert finished_statuses(3465) == {"full"}


@pytest.mark.parametrize("status, finished", [
    ("postprocessed", True),
    ("fullchunk", True),
    ("decorated", False),
    ("full", False),
])
def test_status_of_1_13_chunk(status, finished):
    root = level_chunk(0, 0, [], data_version=1631, status=status)
    assert Chunk.from_tag(root).is_full == finished


def test_status_after_1_14():
    assert Chunk.from_tag(level_chunk(0, 0, [], data_version=1976, status="full")).is_full
    assert not Chunk.from_tag(
        level_chunk(0, 0, [], data_version=1976, status="postprocessed")).is_full
