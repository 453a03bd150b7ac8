"""
Embedding-based context retrieval.

Mechanism only:
- Corpus snippets are embedded once, lazily, on the first query
- Each query is embedded and ranked by cosine similarity (numpy)
- Top-K snippets are returned, most similar first

The corpus is small and in memory; there is no vector database.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from adapters.retrieval.base import Retriever


def load_snippets(path: str | Path) -> list[str]:
    """
    Read a knowledge file: one snippet per blank-line separated paragraph.

    Whitespace-only paragraphs are skipped.
    """
    text = Path(path).read_text(encoding="utf-8")
    paragraphs = [p.strip() for p in text.replace("\r\n", "\n").split("\n\n")]
    return [p for p in paragraphs if p]


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms


class EmbeddingRetriever(Retriever):
    """Cosine-similarity search over a fixed snippet list."""

    def __init__(
        self,
        *,
        client: Any,  # Type: openai.AsyncOpenAI
        snippets: Sequence[str],
        model: str = "text-embedding-3-small",
    ) -> None:
        self._client = client
        self._snippets: tuple[str, ...] = tuple(snippets)
        self._model = model
        self._matrix: np.ndarray | None = None
        self._lock = asyncio.Lock()

    async def retrieve(self, query: str, *, top_k: int) -> list[str]:
        if not self._snippets or top_k <= 0 or not query.strip():
            return []

        matrix = await self._corpus_matrix()
        query_vec = (await self._embed([query]))[0]
        norm = float(np.linalg.norm(query_vec))
        if norm == 0.0:
            return []

        scores = matrix @ (query_vec / norm)
        # Stable ordering: highest score first, ties keep corpus order
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [self._snippets[int(i)] for i in order]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _corpus_matrix(self) -> np.ndarray:
        async with self._lock:
            if self._matrix is None:
                self._matrix = _normalize_rows(await self._embed(list(self._snippets)))
            return self._matrix

    async def _embed(self, texts: list[str]) -> np.ndarray:
        response = await self._client.embeddings.create(model=self._model, input=texts)
        rows = sorted(response.data, key=lambda item: item.index)
        return np.asarray([row.embedding for row in rows], dtype=np.float32)
