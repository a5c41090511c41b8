from typing import List
from docchat.core.config import settings

def chunk_text(text: str, chunk_size: int = settings.CHUNK_SIZE, chunk_overlap: int = settings.CHUNK_OVERLAP) -> List[str]:
    """
    Splits text into fixed-size character windows, consecutive windows sharing
    `chunk_overlap` characters so context that spans a boundary is kept.

    Text no longer than `chunk_size` comes back as a single chunk. Raises
    ValueError for a configuration that could never advance.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must not be negative, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ValueError(f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})")
    if not text:
        return []

    step = chunk_size - chunk_overlap
    chunks = []
    start = 0
    while True:
        end = min(start + chunk_size, len(text))
        chunks.append(text[start:end])
        if end == len(text):
            break
        start += step
    return chunks
