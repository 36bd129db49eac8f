"""
texstore - Shared Texture Deduplication Store
==============================================

Content-addressable cache for rendered UI textures. Encoded bitmaps are
registered against a directory of previously persisted textures, collapsed
onto exact or near-identical matches, and handed back as stable reference
paths for generated UI documents.
"""

__version__ = "0.3.0"
