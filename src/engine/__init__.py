"""Cohost engine.

This package implements the snapshot lifecycle operations on top of
the snapshot registry and a content store adapter.
"""
