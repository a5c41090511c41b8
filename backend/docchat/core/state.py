# Shared application services, built once at startup and held on app.state.
from dataclasses import dataclass
from pathlib import Path

from starlette.requests import HTTPConnection

from docchat.core.config import Settings
from docchat.services.chat_store import SessionStore
from docchat.services.knowledge.indexer import IngestionPipeline
from docchat.services.knowledge.search import QueryEngine
from docchat.services.knowledge.vector_store import VectorStore
from docchat.services.translation import TranslationPipeline


@dataclass
class AppServices:
    store: VectorStore
    ingestion: IngestionPipeline
    query_engine: QueryEngine
    translation: TranslationPipeline
    sessions: SessionStore
    upload_dir: Path


def build_services(settings: Settings) -> AppServices:
    """Wires the real providers (Gemini, sentence-transformers, pypdf) from settings."""
    from docchat.services.knowledge.embeddings import create_embedding_provider
    from docchat.services.knowledge.llm_interface import GeminiLanguageModel
    from docchat.services.parser.main_parser import DocumentExtractor

    store = VectorStore.open(settings.VECTOR_STORE_PATH)
    embeddings = create_embedding_provider(settings)
    llm = GeminiLanguageModel(settings.GEMINI_API_KEY, settings.GEMINI_MODEL_NAME, settings.CHAT_TEMPERATURE)
    extractor = DocumentExtractor(ocr_enabled=settings.OCR_ENABLED, tesseract_cmd=settings.TESSERACT_CMD)

    return AppServices(
        store=store,
        ingestion=IngestionPipeline(store, embeddings, extractor, settings.CHUNK_SIZE, settings.CHUNK_OVERLAP),
        query_engine=QueryEngine(store, embeddings, llm, top_k=settings.SEARCH_TOP_K,
                                 history_turns=settings.HISTORY_TURNS, temperature=settings.CHAT_TEMPERATURE),
        translation=TranslationPipeline(llm, extractor, temperature=settings.TRANSLATION_TEMPERATURE,
                                        concurrency=settings.TRANSLATION_CONCURRENCY),
        sessions=SessionStore(settings.SESSIONS_DIR),
        upload_dir=Path(settings.UPLOAD_DIR),
    )


def get_services(connection: HTTPConnection) -> AppServices:
    """FastAPI dependency; works for both HTTP requests and WebSockets."""
    return connection.app.state.services
