"""Persistent B-tree and hash array mapped trie nodes for immutable collections."""

__version__ = "0.1.0"

__all__ = ["btree", "btree_iter", "btree_diff", "hamt"]