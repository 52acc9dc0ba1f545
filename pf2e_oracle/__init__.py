"""
PF2e Oracle - Pathfinder 2e rules data sync and question answering.

Imports the Foundry VTT PF2e compendium from GitHub, indexes it in
ChromaDB, and answers rules questions over the indexed content.
"""

__version__ = "1.0.0"
