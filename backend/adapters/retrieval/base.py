"""
Retriever contract.

A retriever maps a query to an ordered list of reference snippets,
most relevant first. An empty list is a valid answer ("no context").
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Retriever(ABC):
    """Abstract query -> snippets port."""

    @abstractmethod
    async def retrieve(self, query: str, *, top_k: int) -> list[str]:
        """
        Return at most top_k snippets ordered by relevance.

        May return an empty list. Implementations may raise any exception;
        the pipeline treats a failure as "no context available".
        """
        raise NotImplementedError


class NullRetriever(Retriever):
    """Used when no knowledge source is configured."""

    async def retrieve(self, query: str, *, top_k: int) -> list[str]:
        return []
