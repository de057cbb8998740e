from .store import DiscussionStore

__all__ = ["DiscussionStore"]
