"""
Test suite for IngestionPipeline.

Covers chunk metadata, single-batch embedding, persistence after ingestion
and the all-or-nothing failure policy.
"""

import asyncio
import string
from pathlib import Path

import pytest

from docchat.core.errors import IngestionError
from docchat.services.knowledge.indexer import IngestionPipeline
from docchat.services.knowledge.vector_store import VectorStore


class TestIngest:
    @pytest.mark.asyncio
    async def test_ingest_should_chunk_every_page_with_page_metadata(self, ingestion: IngestionPipeline, extractor,
                                                                      store: VectorStore):
        extractor.add("/docs/form.pdf", ["a" * 150, "short second page"])

        result = await ingestion.ingest("/docs/form.pdf")

        assert result.filename == "form.pdf"
        assert result.pages == 2
        assert result.chunks == 3
        assert [r.metadata["page"] for r in store.records] == [1, 1, 2]
        assert [r.metadata["chunk_index"] for r in store.records] == [0, 1, 0]
        assert all(r.metadata["source"] == "form.pdf" for r in store.records)

    @pytest.mark.asyncio
    async def test_ingest_should_embed_all_chunks_in_one_call(self, ingestion: IngestionPipeline, extractor, embeddings):
        extractor.add("/docs/a.pdf", ["x" * 250, "y" * 90])

        await ingestion.ingest("/docs/a.pdf")

        assert len(embeddings.document_calls) == 1
        assert len(embeddings.document_calls[0]) == 4

    @pytest.mark.asyncio
    async def test_ingest_should_keep_chunk_vector_alignment(self, ingestion: IngestionPipeline, extractor,
                                                             store: VectorStore):
        extractor.add("/docs/a.pdf", ["alpha page", "beta page", "gamma page"])

        await ingestion.ingest("/docs/a.pdf")

        for r in store.records:
            assert r.vector == [float(r.text.count(ch)) for ch in string.ascii_lowercase]

    @pytest.mark.asyncio
    async def test_ingest_should_persist_store(self, ingestion: IngestionPipeline, extractor, store_path: Path):
        extractor.add("/docs/a.pdf", ["some text to persist"])

        await ingestion.ingest("/docs/a.pdf")

        assert len(VectorStore.load(store_path)) == 1

    @pytest.mark.asyncio
    async def test_reingesting_should_duplicate_chunks(self, ingestion: IngestionPipeline, extractor, store: VectorStore):
        extractor.add("/docs/a.pdf", ["same text"])

        await ingestion.ingest("/docs/a.pdf")
        await ingestion.ingest("/docs/a.pdf")

        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_document_without_text_should_succeed_without_touching_store(self, ingestion, extractor,
                                                                              store: VectorStore, store_path: Path):
        extractor.add("/docs/blank.pdf", ["", ""])

        result = await ingestion.ingest("/docs/blank.pdf")

        assert result.chunks == 0
        assert len(store) == 0
        assert not store_path.exists()


class TestIngestFailures:
    @pytest.mark.asyncio
    async def test_embedding_failure_should_leave_store_unchanged(self, ingestion: IngestionPipeline, extractor,
                                                                  embeddings, store: VectorStore, store_path: Path):
        extractor.add("/docs/first.pdf", ["first document"])
        await ingestion.ingest("/docs/first.pdf")
        before_count = len(store)
        before_file = store_path.read_text(encoding="utf-8")

        extractor.add("/docs/second.pdf", ["second document " * 20])
        embeddings.fail = True
        with pytest.raises(IngestionError):
            await ingestion.ingest("/docs/second.pdf")

        assert len(store) == before_count
        assert store_path.read_text(encoding="utf-8") == before_file

    @pytest.mark.asyncio
    async def test_extraction_failure_should_raise_ingestion_error(self, ingestion: IngestionPipeline,
                                                                   store: VectorStore):
        with pytest.raises(IngestionError):
            await ingestion.ingest("/docs/missing.pdf")
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_dimension_mismatch_should_raise_ingestion_error(self, ingestion: IngestionPipeline, extractor,
                                                                   embeddings, store: VectorStore):
        from docchat.models.data_models import ChunkRecord
        store.add([ChunkRecord(text="old", metadata={}, vector=[1.0, 2.0])])
        extractor.add("/docs/a.pdf", ["new text"])

        with pytest.raises(IngestionError):
            await ingestion.ingest("/docs/a.pdf")
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_vector_count_mismatch_should_raise(self, store: VectorStore, extractor):
        class ShortEmbeddings:
            async def embed_documents(self, texts):
                return [[1.0]] * (len(texts) - 1)

            async def embed_query(self, text):
                return [1.0]

        pipeline = IngestionPipeline(store, ShortEmbeddings(), extractor, chunk_size=10, chunk_overlap=2)
        extractor.add("/docs/a.pdf", ["x" * 30])

        with pytest.raises(IngestionError):
            await pipeline.ingest("/docs/a.pdf")
        assert len(store) == 0


class TestConcurrentIngestion:
    @pytest.mark.asyncio
    async def test_concurrent_ingestions_should_not_lose_records(self, ingestion: IngestionPipeline, extractor,
                                                                 store: VectorStore, store_path: Path):
        for i in range(5):
            extractor.add(f"/docs/{i}.pdf", [f"document number {i}"])

        await asyncio.gather(*(ingestion.ingest(f"/docs/{i}.pdf") for i in range(5)))

        assert len(store) == 5
        assert len(VectorStore.load(store_path)) == 5
