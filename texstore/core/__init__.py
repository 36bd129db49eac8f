"""
Core Store Logic
================

This package contains the texture store itself: configuration constants,
the bitmap codec, the similarity comparator, the in-memory index, the
serialized registration pipeline and the shared texture pruner.
"""
