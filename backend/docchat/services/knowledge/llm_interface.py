import google.generativeai as genai
from typing import Optional, Protocol, Sequence
import asyncio

from loguru import logger

from docchat.core.errors import LanguageModelError
from docchat.models.data_models import HistoryTurn


class LanguageModel(Protocol):
    async def complete(self, prompt: str, temperature: Optional[float] = None) -> str: ...


# --- Prompt Templates ---

def build_answer_prompt(*, context: str, question: str, history: Sequence[HistoryTurn] = ()) -> str:
    """Grounded question-answering prompt. Only `context` may be used as a source of facts."""
    parts = [
        "Answer the question based only on the following context:",
        context,
        "",
    ]
    if history:
        parts.append("Conversation so far (for reference only, not a source of facts):")
        for turn in history:
            speaker = "User" if turn.role == "user" else "Assistant"
            parts.append(f"{speaker}: {turn.content}")
        parts.append("")
    parts.extend([
        f"Question: {question}",
        "",
        "If the question is about filling a form, provide specific instructions on what to write in each field found in the context.",
        "",
    ])
    return "\n".join(parts)


def build_translation_prompt(*, text: str, target_language: str) -> str:
    return (
        f"Translate the following text to {target_language}. "
        "Maintain the original formatting structure (paragraphs, lists) as much as possible. "
        "Do not add introductory text.\n\n"
        f"Text:\n{text}"
    )


# --- Gemini Client ---

class GeminiLanguageModel:
    """Gemini completions; the blocking SDK call runs in the default executor."""

    def __init__(self, api_key: Optional[str], model_name: str, default_temperature: float = 0.7):
        self.model_name = model_name
        self.default_temperature = default_temperature
        self._model = None
        if not api_key:
            logger.warning("[LLM Service] GEMINI_API_KEY not set. LLM calls will fail.")
            return
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model_name)
        logger.info(f"[LLM Service] Gemini client OK for model: {model_name}")

    async def complete(self, prompt: str, temperature: Optional[float] = None) -> str:
        if self._model is None:
            raise LanguageModelError("Gemini client is not configured (missing API key)", model=self.model_name)

        generation_config = genai.types.GenerationConfig(
            temperature=self.default_temperature if temperature is None else temperature,
        )
        logger.debug(f"[LLM Service] Calling Gemini ({self.model_name}), prompt length {len(prompt)} chars")
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None, lambda: self._model.generate_content(prompt, generation_config=generation_config)
            )
        except Exception as e:
            raise LanguageModelError(f"Gemini call failed: {e}", model=self.model_name) from e

        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and getattr(feedback, "block_reason", None):
            raise LanguageModelError(f"Prompt blocked: {feedback.block_reason}", model=self.model_name)
        if not response.candidates or not response.candidates[0].content.parts:
            reason = response.candidates[0].finish_reason if response.candidates else "Unknown"
            raise LanguageModelError(f"No valid candidate. Reason: {reason}", model=self.model_name)
        try:
            return response.text
        except ValueError as e:
            raise LanguageModelError(f"Could not read Gemini response: {e}", model=self.model_name) from e
