"""Queue builder for the distributed EPG grabbing pipeline."""

from .queue import QueueBuilder, QueueItem, assign_clusters, split

__all__ = ["QueueBuilder", "QueueItem", "assign_clusters", "split"]
