"""
semsearch - low-latency semantic search over a small in-memory corpus.
"""

VERSION = "1.0.0"

__all__ = ["VERSION"]
