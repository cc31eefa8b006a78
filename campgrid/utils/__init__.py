"""
utils package
-------------

Shared helpers for the scheduling core: time-string parsing, minute labels,
and tolerant identifier comparison.
"""
