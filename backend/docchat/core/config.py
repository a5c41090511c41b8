import os
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional

PROJECT_ROOT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
DATA_DIR_DEFAULT = os.path.join(PROJECT_ROOT_DIR, 'data')

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.path.join(PROJECT_ROOT_DIR, '.env'),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

    PROJECT_NAME: str = "Document Chat Backend"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost", "http://localhost:5173", "http://localhost:3000"]

    # --- LLM Settings ---
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL_NAME: str = "gemini-1.5-flash"
    CHAT_TEMPERATURE: float = 0.7
    TRANSLATION_TEMPERATURE: float = 0.3 # Lower than chat: fidelity over creativity
    TRANSLATION_CONCURRENCY: int = 4

    # --- Embedding & Search Settings ---
    EMBEDDING_PROVIDER: Literal["sentence-transformers", "gemini"] = "sentence-transformers"
    EMBEDDING_MODEL_NAME: str = "all-MiniLM-L6-v2"
    GEMINI_EMBEDDING_MODEL: str = "models/text-embedding-004"
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200
    SEARCH_TOP_K: int = 4
    HISTORY_TURNS: int = 6

    # --- Storage Paths (relative to project root) ---
    DATA_DIR: str = DATA_DIR_DEFAULT
    # Unset paths are placed under DATA_DIR
    UPLOAD_DIR: Optional[str] = None
    SESSIONS_DIR: Optional[str] = None
    VECTOR_STORE_PATH: Optional[str] = None

    # --- OCR Settings ---
    OCR_ENABLED: bool = False
    TESSERACT_CMD: Optional[str] = None

    @model_validator(mode='after')
    def _place_data_paths(self) -> 'Settings':
        if self.UPLOAD_DIR is None:
            self.UPLOAD_DIR = os.path.join(self.DATA_DIR, 'uploaded_files')
        if self.SESSIONS_DIR is None:
            self.SESSIONS_DIR = os.path.join(self.DATA_DIR, 'chats')
        if self.VECTOR_STORE_PATH is None:
            self.VECTOR_STORE_PATH = os.path.join(self.DATA_DIR, 'vector_store.json')
        return self

settings = Settings()
