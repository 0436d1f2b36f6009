"""Splitting batches to provider-sized chunks."""

from typing import Iterable, List, Sequence, TypeVar

T = TypeVar("T")


class BatchSplitter:
    """Slices an ordered sequence into consecutive chunks of at most ``limit``."""

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"Batch size limit must be at least 1, got {limit}")
        self.limit = limit

    def split(self, items: Sequence[T]) -> List[List[T]]:
        return [
            list(items[i:i + self.limit])
            for i in range(0, len(items), self.limit)
        ]

    @staticmethod
    def merge(chunks: Iterable[Sequence[T]]) -> List[T]:
        """Concatenate chunk results back into one list, in chunk order."""
        merged: List[T] = []
        for chunk in chunks:
            merged.extend(chunk)
        return merged
