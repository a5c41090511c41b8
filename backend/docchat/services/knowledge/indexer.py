import asyncio
import os
from typing import List, Optional

from loguru import logger

from docchat.core.errors import DimensionMismatch, EmbeddingError, ExtractionError, IngestionError
from docchat.models.data_models import ChunkRecord, IngestionResult, Page
from docchat.services.knowledge.embeddings import EmbeddingProvider
from docchat.services.knowledge.vector_store import VectorStore
from docchat.services.parser.main_parser import DocumentExtractor
from docchat.services.text_splitter import chunk_text


class IngestionPipeline:
    """
    extract -> chunk -> batch-embed -> commit to the vector store.

    The store is only touched after every chunk of the document has an
    embedding, so a failed ingestion leaves it exactly as it was.
    """

    def __init__(self, store: VectorStore, embeddings: EmbeddingProvider, extractor: DocumentExtractor,
                 chunk_size: int, chunk_overlap: int):
        self.store = store
        self.embeddings = embeddings
        self.extractor = extractor
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def _chunk_pages(self, pages: List[Page], source: str) -> List[dict]:
        chunks = []
        for page in pages:
            for i, text in enumerate(chunk_text(page.text, self.chunk_size, self.chunk_overlap)):
                chunks.append({"text": text, "metadata": {"source": source, "page": page.index + 1, "chunk_index": i}})
        return chunks

    async def ingest(self, file_path: str, source: Optional[str] = None) -> IngestionResult:
        source = source or os.path.basename(file_path)
        logger.info(f"[Indexer Service] Ingesting {source}")

        # --- Stage 1: Extract ---
        loop = asyncio.get_running_loop()
        try:
            pages = await loop.run_in_executor(None, self.extractor.extract_pages, file_path)
        except ExtractionError as e:
            raise IngestionError(f"Could not extract text from {source}: {e.message}") from e

        # --- Stage 2: Chunk ---
        chunks = self._chunk_pages(pages, source)
        logger.info(f"[Indexer Service] {source}: {len(pages)} pages, {len(chunks)} chunks")
        if not chunks:
            logger.warning(f"[Indexer Service] {source} produced no text; nothing to index.")
            return IngestionResult(filename=source, pages=len(pages), chunks=0)

        # --- Stage 3: Embed (one batch) ---
        try:
            vectors = await self.embeddings.embed_documents([c["text"] for c in chunks])
        except EmbeddingError as e:
            raise IngestionError(f"Embedding failed for {source}: {e.message}") from e
        if len(vectors) != len(chunks):
            raise IngestionError(f"Embedding provider returned {len(vectors)} vectors for {len(chunks)} chunks")

        # --- Stage 4: Commit ---
        records = [ChunkRecord(text=c["text"], metadata=c["metadata"], vector=v) for c, v in zip(chunks, vectors)]
        try:
            await self.store.commit(records)
        except DimensionMismatch as e:
            raise IngestionError(f"Embeddings for {source} do not match the corpus: {e.message}") from e
        except OSError as e:
            raise IngestionError(f"Could not persist the vector store: {e}") from e

        logger.info(f"[Indexer Service] Indexed {len(records)} chunks from {source}. Corpus size: {len(self.store)}")
        return IngestionResult(filename=source, pages=len(pages), chunks=len(records))
