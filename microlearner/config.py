import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from microlearner.services.flashcard_service import MAX_DOCUMENT_CHARS

# Load environment variables from .env file
load_dotenv()


class Settings(BaseModel):
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    max_document_chars: int = MAX_DOCUMENT_CHARS
    store_path: Optional[str] = None
    port: int = 8000


def get_settings() -> Settings:
    return Settings(
        openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
        openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        max_document_chars=int(os.environ.get("MAX_DOCUMENT_CHARS", MAX_DOCUMENT_CHARS)),
        store_path=os.environ.get("FLASHCARD_STORE_PATH") or None,
        port=int(os.environ.get("PORT", 8000)),
    )
