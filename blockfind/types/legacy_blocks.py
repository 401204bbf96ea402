"""
Block names for the numeric ids stored by worlds saved before the 1.13
flattening (DataVersion 1451). Only the id is mapped; the 4-bit data value that
selected variants such as wool colour is ignored, so every variant of an id
reports the name of its first variant.
"""

_colours = (
    'white', 'orange', 'magenta', 'light_blue', 'yellow', 'lime', 'pink',
    'gray', 'light_gray', 'cyan', 'purple', 'blue', 'brown', 'green', 'red',
    'black')

_names = [
    'air', 'stone', 'grass_block', 'dirt', 'cobblestone', 'oak_planks',
    'oak_sapling', 'bedrock', 'water', 'water', 'lava', 'lava', 'sand',
    'gravel', 'gold_ore', 'iron_ore', 'coal_ore', 'oak_log', 'oak_leaves',
    'sponge', 'glass', 'lapis_ore', 'lapis_block', 'dispenser', 'sandstone',
    'note_block', 'red_bed', 'powered_rail', 'detector_rail', 'sticky_piston',
    'cobweb', 'grass', 'dead_bush', 'piston', 'piston_head', 'white_wool',
    'moving_piston', 'dandelion', 'poppy', 'brown_mushroom', 'red_mushroom',
    'gold_block', 'iron_block', 'smooth_stone_slab', 'smooth_stone_slab',
    'bricks', 'tnt', 'bookshelf', 'mossy_cobblestone', 'obsidian', 'torch',
    'fire', 'spawner', 'oak_stairs', 'chest', 'redstone_wire', 'diamond_ore',
    'diamond_block', 'crafting_table', 'wheat', 'farmland', 'furnace',
    'furnace', 'oak_sign', 'oak_door', 'ladder', 'rail', 'cobblestone_stairs',
    'oak_wall_sign', 'lever', 'stone_pressure_plate', 'iron_door',
    'oak_pressure_plate', 'redstone_ore', 'redstone_ore', 'redstone_torch',
    'redstone_torch', 'stone_button', 'snow', 'ice', 'snow_block', 'cactus',
    'clay', 'sugar_cane', 'jukebox', 'oak_fence', 'carved_pumpkin',
    'netherrack', 'soul_sand', 'glowstone', 'nether_portal', 'jack_o_lantern',
    'cake', 'repeater', 'repeater', 'white_stained_glass', 'oak_trapdoor',
    'infested_stone', 'stone_bricks', 'brown_mushroom_block',
    'red_mushroom_block', 'iron_bars', 'glass_pane', 'melon', 'pumpkin_stem',
    'melon_stem', 'vine', 'oak_fence_gate', 'brick_stairs',
    'stone_brick_stairs', 'mycelium', 'lily_pad', 'nether_bricks',
    'nether_brick_fence', 'nether_brick_stairs', 'nether_wart',
    'enchanting_table', 'brewing_stand', 'cauldron', 'end_portal',
    'end_portal_frame', 'end_stone', 'dragon_egg', 'redstone_lamp',
    'redstone_lamp', 'oak_slab', 'oak_slab', 'cocoa', 'sandstone_stairs',
    'emerald_ore', 'ender_chest', 'tripwire_hook', 'tripwire',
    'emerald_block', 'spruce_stairs', 'birch_stairs', 'jungle_stairs',
    'command_block', 'beacon', 'cobblestone_wall', 'flower_pot', 'carrots',
    'potatoes', 'oak_button', 'skeleton_skull', 'anvil', 'trapped_chest',
    'light_weighted_pressure_plate', 'heavy_weighted_pressure_plate',
    'comparator', 'comparator', 'daylight_detector', 'redstone_block',
    'nether_quartz_ore', 'hopper', 'quartz_block', 'quartz_stairs',
    'activator_rail', 'dropper', 'white_terracotta',
    'white_stained_glass_pane', 'acacia_leaves', 'acacia_log',
    'acacia_stairs', 'dark_oak_stairs', 'slime_block', 'barrier',
    'iron_trapdoor', 'prismarine', 'sea_lantern', 'hay_block', 'white_carpet',
    'terracotta', 'coal_block', 'packed_ice', 'sunflower', 'white_banner',
    'white_wall_banner', 'daylight_detector', 'red_sandstone',
    'red_sandstone_stairs', 'red_sandstone_slab', 'red_sandstone_slab',
    'spruce_fence_gate', 'birch_fence_gate', 'jungle_fence_gate',
    'dark_oak_fence_gate', 'acacia_fence_gate', 'spruce_fence', 'birch_fence',
    'jungle_fence', 'dark_oak_fence', 'acacia_fence', 'spruce_door',
    'birch_door', 'jungle_door', 'acacia_door', 'dark_oak_door', 'end_rod',
    'chorus_plant', 'chorus_flower', 'purpur_block', 'purpur_pillar',
    'purpur_stairs', 'purpur_slab', 'purpur_slab', 'end_stone_bricks',
    'beetroots', 'dirt_path', 'end_gateway', 'repeating_command_block',
    'chain_command_block', 'frosted_ice', 'magma_block', 'nether_wart_block',
    'red_nether_bricks', 'bone_block', 'structure_void', 'observer',
]
_names += [f'{colour}_shulker_box' for colour in _colours]
_names += [f'{colour}_glazed_terracotta' for colour in _colours]
_names += ['white_concrete', 'white_concrete_powder']

LEGACY_BLOCK_NAMES = {block_id: f'minecraft:{name}' for block_id, name in enumerate(_names)}
LEGACY_BLOCK_NAMES[255] = 'minecraft:structure_block'


def legacy_block_name(block_id):
    """
    Returns the namespaced name for a numeric block id. Ids without a known
    name map to ``legacy:<id>`` so they can still be searched for.
    """
    try:
        return LEGACY_BLOCK_NAMES[block_id]
    except KeyError:
        return f'legacy:{block_id}'
