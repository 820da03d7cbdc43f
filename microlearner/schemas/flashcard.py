from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
import uuid


class Mood(str, Enum):
    energetic = "energetic"
    calm = "calm"
    serious = "serious"
    inspirational = "inspirational"
    technical = "technical"
    creative = "creative"


class CardFields(BaseModel):
    """The five fields the AI service fills in for one flashcard."""
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    category: str = Field(min_length=1)
    mood: Mood
    icon: str = Field(min_length=1)


class Flashcard(CardFields):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    model_config = {"frozen": True}


class DeckStatus(str, Enum):
    idle = "idle"
    loading = "loading"


class DeckView(BaseModel):
    has_document: bool
    cursor: int
    total: int
    position: int
    status: DeckStatus
    error: Optional[str] = None
    exhausted: bool
    caught_up: bool
    cards: List[Flashcard] = []
