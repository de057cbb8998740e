"""TF-IDF similarity between discussions and merging of near duplicates."""

from .index import SimilarityIndex
from .merge import merge_discussions
from .tokenize import preprocess, tokenize

__all__ = ["SimilarityIndex", "merge_discussions", "preprocess", "tokenize"]
