"""Storage layer.

This package persists the snapshot registry and adapts the
content-addressed storage node used to pin cohosted content.
"""
