"""
Find blocks in Minecraft region files, nearest first.
"""

__version__ = "0.1.0"
