"""Bounded recency set for event deduplication."""


class RecentIdSet:
    """
    Remembers recently seen ids.

    Once more than ``max_size`` ids are held, only the newest ``trim_to``
    are kept, so an id replayed within the recent window is detected while
    memory stays bounded.
    """

    def __init__(self, max_size: int = 1000, trim_to: int = 500):
        if trim_to > max_size:
            raise ValueError("trim_to must not exceed max_size")
        self.max_size = max_size
        self.trim_to = trim_to
        # dicts preserve insertion order, which is the eviction order
        self._ids: dict[str, None] = {}

    def add(self, item_id: str) -> bool:
        """
        Record an id.

        Returns:
            True if the id was new, False if it was already present.
        """
        if item_id in self._ids:
            return False

        self._ids[item_id] = None
        if len(self._ids) > self.max_size:
            keep = list(self._ids)[-self.trim_to:]
            self._ids = dict.fromkeys(keep)
        return True

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def clear(self) -> None:
        self._ids.clear()
