"""
datapack_sync
Validation, reshaping and import scripts for the BuildRight datapacks.
"""

__version__ = "0.1.0"
