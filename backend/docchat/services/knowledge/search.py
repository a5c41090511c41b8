from typing import List, Sequence

from loguru import logger

from docchat.core.errors import EmbeddingError, LanguageModelError, QueryError
from docchat.models.data_models import HistoryTurn, ScoredChunk
from docchat.services.knowledge.embeddings import EmbeddingProvider
from docchat.services.knowledge.llm_interface import LanguageModel, build_answer_prompt
from docchat.services.knowledge.vector_store import VectorStore

EMPTY_STORE_MESSAGE = "Please upload a document first so I can answer questions about it."


class QueryEngine:
    """Retrieval-augmented question answering over the shared vector store."""

    def __init__(self, store: VectorStore, embeddings: EmbeddingProvider, llm: LanguageModel,
                 top_k: int = 4, history_turns: int = 6, temperature: float = 0.7):
        self.store = store
        self.embeddings = embeddings
        self.llm = llm
        self.top_k = top_k
        self.history_turns = history_turns
        self.temperature = temperature

    async def retrieve_context(self, question: str, top_k: int) -> List[ScoredChunk]:
        """Embeds the question and returns the top_k most similar chunks."""
        query_vector = await self.embeddings.embed_query(question)
        results = self.store.search(query_vector, top_k)
        logger.debug(f"[Search Service] Retrieved {len(results)} chunks, scores {[round(r.score, 3) for r in results]}")
        return results

    async def answer(self, question: str, history: Sequence[HistoryTurn] = ()) -> str:
        if len(self.store) == 0:
            return EMPTY_STORE_MESSAGE

        try:
            results = await self.retrieve_context(question, self.top_k)
        except EmbeddingError as e:
            raise QueryError(f"Could not embed question: {e.message}") from e

        context = "\n\n".join(r.record.text for r in results)
        recent = list(history)[-self.history_turns:] if self.history_turns > 0 else []
        prompt = build_answer_prompt(context=context, question=question, history=recent)

        try:
            return await self.llm.complete(prompt, temperature=self.temperature)
        except LanguageModelError as e:
            raise QueryError(f"Language model failed: {e.message}") from e
