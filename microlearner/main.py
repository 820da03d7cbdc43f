import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI
from openai import AsyncOpenAI

from microlearner.config import Settings, get_settings
from microlearner.routers import deck
from microlearner.services.deck_service import DeckSession
from microlearner.services.file_processing import DEFAULT_EXTRACTORS, Extractor
from microlearner.services.flashcard_service import CardGenerator, FlashcardGenerator, UnconfiguredGenerator
from microlearner.services.storage import InMemoryStore, JsonFileStore, Store


def build_generator(settings: Settings) -> CardGenerator:
    if not settings.openai_api_key:
        print("Warning: OPENAI_API_KEY is not set, flashcard generation is disabled")
        return UnconfiguredGenerator()
    client = AsyncOpenAI(api_key=settings.openai_api_key)
    return FlashcardGenerator(client, model=settings.openai_model, max_chars=settings.max_document_chars)


def build_store(settings: Settings) -> Store:
    if settings.store_path:
        print(f"Persisting deck to {settings.store_path}")
        return JsonFileStore(settings.store_path)
    return InMemoryStore()


def create_app(
    settings: Optional[Settings] = None,
    generator: Optional[CardGenerator] = None,
    store: Optional[Store] = None,
    extractors: Optional[Dict[str, Extractor]] = None,
) -> FastAPI:
    settings = settings or get_settings()
    generator = generator or build_generator(settings)
    store = store if store is not None else build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = app.state.deck
        # A restored document without cards still needs its first card
        if session.document is not None and not session.cards:
            app.state.resume_task = asyncio.create_task(session.request_card())
        yield
        task = getattr(app.state, "resume_task", None)
        if task is not None and not task.done():
            task.cancel()

    app = FastAPI(
        title="AI Micro-Learner",
        description="Turns uploaded documents into a swipeable deck of AI-generated flashcards",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.deck = DeckSession(generator, store)
    app.state.extractors = extractors if extractors is not None else dict(DEFAULT_EXTRACTORS)

    app.include_router(deck.router)

    @app.get("/")
    def read_root():
        return {"message": "Welcome to AI Micro-Learner API!"}

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "message": "API is running"}

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)


if __name__ == "__main__":
    run()
