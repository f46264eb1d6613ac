"""
Object store - single-node object storage over HTTP.

Blobs live on the filesystem at hash-derived paths; their metadata lives
in a SQLite catalog.
"""

__version__ = "0.1.0"
