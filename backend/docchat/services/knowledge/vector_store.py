"""
Exact cosine-similarity vector store persisted to a single JSON file.

The corpus is bounded by single-document usage, so search is a brute-force
scan over every stored vector with numpy. An indexed nearest-neighbour
structure could replace the scan behind the same `search` contract.
"""

import asyncio
import functools
import json
import os
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger
from pydantic import ValidationError

from docchat.core.errors import CorruptStore, DimensionMismatch
from docchat.core.storage import atomic_write_json
from docchat.models.data_models import ChunkRecord, ScoredChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 when either vector has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise DimensionMismatch(expected=va.shape[0], actual=vb.shape[0])
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


class VectorStore:
    """
    Ordered, append-only collection of ChunkRecords.

    Readers always see an immutable snapshot: `add` builds a new record list
    and swaps it in. `commit` is the only mutation path used by ingestion; it
    serialises persist-then-publish with an asyncio.Lock.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, records: Iterable[ChunkRecord] = ()):
        self.path = Path(path) if path else None
        self._records: Tuple[ChunkRecord, ...] = ()
        self._matrix: Optional[np.ndarray] = None
        self._lock = asyncio.Lock()
        records = tuple(records)
        if records:
            self.add(records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[ChunkRecord, ...]:
        return self._records

    @property
    def dimension(self) -> Optional[int]:
        return len(self._records[0].vector) if self._records else None

    # --- Mutation ---

    def _extended(self, records: Sequence[ChunkRecord]) -> Tuple[Tuple[ChunkRecord, ...], Optional[np.ndarray]]:
        """The snapshot the store would hold after appending `records`; nothing is published."""
        if not records:
            return self._records, self._matrix
        expected = self.dimension if self.dimension is not None else len(records[0].vector)
        for record in records:
            if len(record.vector) != expected:
                raise DimensionMismatch(expected=expected, actual=len(record.vector))

        new_rows = np.asarray([r.vector for r in records], dtype=np.float64).reshape(len(records), expected)
        matrix = new_rows if self._matrix is None else np.vstack([self._matrix, new_rows])
        return self._records + tuple(records), matrix

    def add(self, records: Sequence[ChunkRecord]) -> None:
        """Appends records; all must match the store's dimensionality (or the first new record's, if empty)."""
        # Swap both in one step so a concurrent search sees old or new, never a mix
        self._records, self._matrix = self._extended(records)

    async def commit(self, records: Sequence[ChunkRecord]) -> None:
        """
        Persists the store with `records` appended, then publishes it.

        Searches keep seeing the previous snapshot until the file write has
        succeeded; a failed write leaves the store untouched.
        """
        async with self._lock:
            new_records, new_matrix = self._extended(records)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, functools.partial(self.persist, records=new_records))
            self._records, self._matrix = new_records, new_matrix
            logger.info(f"[Vector Store] Committed {len(records)} records (total {len(new_records)})")

    # --- Search ---

    def search(self, query_vector: Sequence[float], k: int) -> List[ScoredChunk]:
        """Top-k records by cosine similarity; ties keep insertion order."""
        records, matrix = self._records, self._matrix
        if k <= 0 or not records:
            return []
        query = np.asarray(query_vector, dtype=np.float64).ravel()
        if query.shape[0] != matrix.shape[1]:
            raise DimensionMismatch(expected=matrix.shape[1], actual=query.shape[0])

        denom = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        scores = np.zeros(len(records), dtype=np.float64)
        nonzero = denom > 0
        scores[nonzero] = dots[nonzero] / denom[nonzero]
        scores = np.clip(scores, -1.0, 1.0)

        order = np.argsort(-scores, kind="stable")[:k]
        return [ScoredChunk(record=records[i], score=float(scores[i])) for i in order]

    # --- Persistence ---

    def persist(self, path: Optional[Union[str, Path]] = None,
                records: Optional[Sequence[ChunkRecord]] = None) -> None:
        """Rewrites the whole store file (with `records`, default the current ones); the previous file survives a failed write."""
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("VectorStore has no path to persist to")
        if records is None:
            records = self._records
        atomic_write_json(target, [r.model_dump(mode="json") for r in records])
        logger.debug(f"[Vector Store] Saved {len(records)} records to {target}")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "VectorStore":
        """Loads a persisted store. A missing file gives an empty store."""
        path = Path(path)
        if not path.exists():
            logger.info(f"[Vector Store] No store file at {path}, starting empty.")
            return cls(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptStore(f"Store file is not valid JSON: {e}", str(path)) from e
        if not isinstance(raw, list):
            raise CorruptStore("Store file must hold a JSON array of records", str(path))
        try:
            records = [ChunkRecord.model_validate(item) for item in raw]
        except ValidationError as e:
            raise CorruptStore(f"Malformed record in store file: {e}", str(path)) from e
        try:
            store = cls(path, records)
        except DimensionMismatch as e:
            raise CorruptStore(f"Inconsistent vector dimensions in store file: {e}", str(path)) from e
        logger.info(f"[Vector Store] Loaded {len(store)} records from {path} (dim {store.dimension})")
        return store

    @classmethod
    def open(cls, path: Union[str, Path]) -> "VectorStore":
        """Startup loader: a corrupt file is moved aside and an empty store is used."""
        path = Path(path)
        try:
            return cls.load(path)
        except CorruptStore as e:
            backup = path.with_name(f"{path.name}.corrupt-{int(time.time())}")
            logger.error(f"[Vector Store] {e.message}. Moving it to {backup} and starting empty.")
            os.replace(path, backup)
            return cls(path)
