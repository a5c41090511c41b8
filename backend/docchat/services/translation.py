import asyncio
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from docchat.core.errors import ExtractionError, LanguageModelError, TranslationError
from docchat.services.knowledge.llm_interface import LanguageModel, build_translation_prompt
from docchat.services.parser.main_parser import DocumentExtractor

ProgressCallback = Callable[[int, int], Awaitable[None]]


class TranslationPipeline:
    """
    Translates a document page by page.

    Each page is an independent model call; up to `concurrency` run at once
    and the result list is reassembled in page order. One failed page fails
    the whole translation.
    """

    def __init__(self, llm: LanguageModel, extractor: DocumentExtractor, temperature: float = 0.3, concurrency: int = 4):
        self.llm = llm
        self.extractor = extractor
        self.temperature = temperature
        self.concurrency = max(1, concurrency)

    async def translate(self, target_language: str, file_path: str,
                        on_progress: Optional[ProgressCallback] = None) -> List[str]:
        if not target_language or not target_language.strip():
            raise ValueError("target_language must not be blank")

        loop = asyncio.get_running_loop()
        try:
            pages = await loop.run_in_executor(None, self.extractor.extract_pages, file_path)
        except ExtractionError as e:
            raise TranslationError(f"Could not extract pages: {e.message}") from e

        total = len(pages)
        logger.info(f"[Translation] Translating {total} pages to {target_language}")
        semaphore = asyncio.Semaphore(self.concurrency)
        completed = 0

        async def translate_page(text: str) -> str:
            nonlocal completed
            async with semaphore:
                prompt = build_translation_prompt(text=text, target_language=target_language)
                translated = await self.llm.complete(prompt, temperature=self.temperature)
            completed += 1
            if on_progress is not None:
                await on_progress(completed, total)
            return translated

        tasks = [asyncio.ensure_future(translate_page(page.text)) for page in pages]
        try:
            return list(await asyncio.gather(*tasks))
        except LanguageModelError as e:
            raise TranslationError(f"Page translation failed: {e.message}") from e
        finally:
            for task in tasks:
                task.cancel()
            # Collect outstanding results so no task exception goes unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
