import asyncio
from typing import List, Protocol

import google.generativeai as genai
from loguru import logger

from docchat.core.config import Settings
from docchat.core.errors import EmbeddingError


class EmbeddingProvider(Protocol):
    """Turns text into fixed-length vectors."""

    async def embed_documents(self, texts: List[str]) -> List[List[float]]: ...

    async def embed_query(self, text: str) -> List[float]: ...


class SentenceTransformerEmbeddings:
    """Local sentence-transformers model; encoding runs in the default executor."""

    def __init__(self, model_name: str):
        from sentence_transformers import SentenceTransformer

        logger.info(f"[Embeddings] Loading embedding model: {model_name}")
        try:
            self._model = SentenceTransformer(model_name)
        except Exception as e:
            raise EmbeddingError(f"Failed to load embedding model '{model_name}': {e}", model=model_name) from e
        self.model_name = model_name
        self.dimension = self._model.get_sentence_embedding_dimension()
        logger.info(f"[Embeddings] Embedding model loaded. Dimension: {self.dimension}")

    async def _encode(self, texts: List[str]) -> List[List[float]]:
        loop = asyncio.get_running_loop()
        try:
            embeddings = await loop.run_in_executor(
                None, lambda: self._model.encode(texts, convert_to_numpy=True, show_progress_bar=False)
            )
        except Exception as e:
            raise EmbeddingError(f"Embedding {len(texts)} texts failed: {e}", model=self.model_name) from e
        return embeddings.tolist()

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await self._encode(texts)

    async def embed_query(self, text: str) -> List[float]:
        return (await self._encode([text]))[0]


class GeminiEmbeddings:
    """Gemini embedding model via google-generativeai."""

    def __init__(self, api_key: str, model_name: str):
        if not api_key:
            raise EmbeddingError("GEMINI_API_KEY is required for Gemini embeddings", model=model_name)
        genai.configure(api_key=api_key)
        self.model_name = model_name

    async def _embed(self, content, task_type: str):
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None, lambda: genai.embed_content(model=self.model_name, content=content, task_type=task_type)
            )
            return response["embedding"]
        except Exception as e:
            raise EmbeddingError(f"Gemini embedding call failed: {e}", model=self.model_name) from e

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        return await self._embed(texts, "retrieval_document")

    async def embed_query(self, text: str) -> List[float]:
        return await self._embed(text, "retrieval_query")


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    if settings.EMBEDDING_PROVIDER == "gemini":
        return GeminiEmbeddings(settings.GEMINI_API_KEY or "", settings.GEMINI_EMBEDDING_MODEL)
    return SentenceTransformerEmbeddings(settings.EMBEDDING_MODEL_NAME)
