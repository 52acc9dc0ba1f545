"""
Content Parsing

Markup cleanup for Foundry VTT compendium text.
"""

from pf2e_oracle.parser.content import CLEANUP_PASSES, clean_content

__all__ = ["CLEANUP_PASSES", "clean_content"]
