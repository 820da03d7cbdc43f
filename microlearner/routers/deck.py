from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from microlearner.schemas.flashcard import DeckView
from microlearner.services.deck_service import DeckSession
from microlearner.services.file_processing import (
    CorruptFile,
    ExtractorUnavailable,
    UnsupportedFormat,
    check_supported,
    extract_text,
)

router = APIRouter(prefix="/deck", tags=["Flashcard Deck"])


def get_deck(request: Request) -> DeckSession:
    return request.app.state.deck


@router.get("", response_model=DeckView)
async def get_deck_view(deck: DeckSession = Depends(get_deck)):
    return deck.view()


@router.post("/upload", response_model=DeckView)
async def upload_document(request: Request, file: UploadFile = File(...), deck: DeckSession = Depends(get_deck)):
    """
    Extract the text of an uploaded .txt, .pdf, .docx or .md file and start a
    new deck for it. The first flashcard is generated before responding.
    """
    extractors = request.app.state.extractors
    try:
        # Reject unknown extensions before reading or parsing anything
        check_supported(file.filename, extractors)
        data = await file.read()
        print(f"Extracting text from {file.filename}...")
        text = await run_in_threadpool(extract_text, file.filename, data, extractors)
    except UnsupportedFormat as e:
        raise HTTPException(status_code=415, detail=e.message)
    except (CorruptFile, ExtractorUnavailable) as e:
        raise HTTPException(status_code=422, detail=e.message)

    print(f"Loaded {file.filename} ({len(text)} characters)")
    await deck.load_document(text)
    return deck.view()


@router.post("/advance", response_model=DeckView)
async def advance_deck(deck: DeckSession = Depends(get_deck)):
    """Dismiss the current card. Running out of cards requests a new one."""
    if deck.document is None:
        raise HTTPException(status_code=409, detail="Upload a document first.")
    if deck.exhausted:
        raise HTTPException(status_code=409, detail="There is no card to dismiss.")
    await deck.advance()
    return deck.view()


@router.post("/generate", response_model=DeckView)
async def generate_card(deck: DeckSession = Depends(get_deck)):
    if deck.document is None:
        raise HTTPException(status_code=409, detail="Upload a document first.")
    await deck.request_card()
    return deck.view()


@router.delete("", response_model=DeckView)
async def reset_deck(deck: DeckSession = Depends(get_deck)):
    deck.reset_deck()
    return deck.view()
