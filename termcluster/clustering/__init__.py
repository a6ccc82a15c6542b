"""Ward agglomerative clustering: build the dendrogram once, cut it many times."""

from .ward import build_dendrogram
from .cut import cut_tree, cut_tree_at_height

__all__ = [
    "build_dendrogram",
    "cut_tree",
    "cut_tree_at_height",
]
