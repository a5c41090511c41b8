"""
Shared test fixtures for the document chat backend.

Provides: deterministic fake embedding provider, language model and text
extractor; tmp_path-backed vector and session stores; a FastAPI TestClient
wired to those fakes.
System role: Test infrastructure and fixture management
"""

import string
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from docchat.core.errors import EmbeddingError, ExtractionError, LanguageModelError
from docchat.core.state import AppServices
from docchat.models.data_models import Page
from docchat.services.chat_store import SessionStore
from docchat.services.knowledge.indexer import IngestionPipeline
from docchat.services.knowledge.search import QueryEngine
from docchat.services.knowledge.vector_store import VectorStore
from docchat.services.translation import TranslationPipeline


def letter_vector(text: str) -> List[float]:
    """26-dim letter histogram; similar letters give similar vectors."""
    lowered = text.lower()
    return [float(lowered.count(ch)) for ch in string.ascii_lowercase]


class FakeEmbeddings:
    """Letter-histogram embeddings with switchable failure."""

    def __init__(self) -> None:
        self.fail = False
        self.document_calls: List[List[str]] = []
        self.query_calls: List[str] = []

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls.append(list(texts))
        if self.fail:
            raise EmbeddingError("embedding service unavailable", model="fake")
        return [letter_vector(t) for t in texts]

    async def embed_query(self, text: str) -> List[float]:
        self.query_calls.append(text)
        if self.fail:
            raise EmbeddingError("embedding service unavailable", model="fake")
        return letter_vector(text)


class FakeLanguageModel:
    """Records prompts; answers with `responder(prompt)` or fails when the prompt contains `fail_on`."""

    def __init__(self, responder: Optional[Callable[[str], str]] = None) -> None:
        self.responder = responder or (lambda prompt: "fake answer")
        self.fail_on: Optional[str] = None
        self.calls: List[Dict] = []

    async def complete(self, prompt: str, temperature: Optional[float] = None) -> str:
        self.calls.append({"prompt": prompt, "temperature": temperature})
        if self.fail_on is not None and self.fail_on in prompt:
            raise LanguageModelError("model unavailable", model="fake")
        return self.responder(prompt)


class FakeExtractor:
    """Serves page texts registered per file path."""

    def __init__(self) -> None:
        self.documents: Dict[str, List[str]] = {}

    def add(self, file_path: str, pages: List[str]) -> None:
        self.documents[str(file_path)] = pages

    def extract_pages(self, file_path: str) -> List[Page]:
        if str(file_path) not in self.documents:
            raise ExtractionError("File does not exist", str(file_path))
        return [Page(index=i, text=t) for i, t in enumerate(self.documents[str(file_path)])]


def translate_by_tagging(prompt: str) -> str:
    """Fake translation: echoes the page text after the 'Text:' marker, tagged."""
    return "[translated] " + prompt.split("Text:\n", 1)[1]


@pytest.fixture
def vectorize() -> Callable[[str], List[float]]:
    """The fake provider's embedding function, for building expected vectors."""
    return letter_vector


@pytest.fixture
def embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def llm() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "vector_store.json"


@pytest.fixture
def store(store_path: Path) -> VectorStore:
    return VectorStore(store_path)


@pytest.fixture
def session_store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "chats")


@pytest.fixture
def ingestion(store: VectorStore, embeddings: FakeEmbeddings, extractor: FakeExtractor) -> IngestionPipeline:
    return IngestionPipeline(store, embeddings, extractor, chunk_size=100, chunk_overlap=20)


@pytest.fixture
def query_engine(store: VectorStore, embeddings: FakeEmbeddings, llm: FakeLanguageModel) -> QueryEngine:
    return QueryEngine(store, embeddings, llm, top_k=4, history_turns=6, temperature=0.7)


@pytest.fixture
def translation(llm: FakeLanguageModel, extractor: FakeExtractor) -> TranslationPipeline:
    llm.responder = translate_by_tagging
    return TranslationPipeline(llm, extractor, temperature=0.3, concurrency=2)


@pytest.fixture
def services(tmp_path: Path, store: VectorStore, ingestion: IngestionPipeline, query_engine: QueryEngine,
             translation: TranslationPipeline, session_store: SessionStore) -> AppServices:
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return AppServices(
        store=store,
        ingestion=ingestion,
        query_engine=query_engine,
        translation=translation,
        sessions=session_store,
        upload_dir=upload_dir,
    )


@pytest.fixture
def client(services: AppServices):
    """TestClient running the app lifespan with fake services."""
    from main import create_app

    with TestClient(create_app(services)) as test_client:
        yield test_client
