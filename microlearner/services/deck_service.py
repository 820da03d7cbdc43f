from typing import List, Optional

from pydantic import ValidationError

from microlearner.schemas.flashcard import DeckStatus, DeckView, Flashcard
from microlearner.services.flashcard_service import CardGenerator, GenerationError
from microlearner.services.storage import CARDS_KEY, DOCUMENT_KEY, InMemoryStore, Store

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred while generating the flashcard."


class DeckSession:
    """
    Owns the document, the append-only list of generated cards and the cursor
    marking the card the user is looking at. New cards are only requested when
    the deck runs out, and never more than one at a time.
    """

    def __init__(self, generator: CardGenerator, store: Optional[Store] = None, lookahead: int = 2):
        self.generator = generator
        self.store = store if store is not None else InMemoryStore()
        self.lookahead = lookahead
        self.document: Optional[str] = None
        self.cards: List[Flashcard] = []
        self.cursor = 0
        self.status = DeckStatus.idle
        self.last_error: Optional[str] = None
        # Bumped whenever the document is replaced or cleared; a generation
        # only counts if the token it started under is still current.
        self._token = 0
        self._restore()

    def _restore(self) -> None:
        document = self.store.get(DOCUMENT_KEY)
        if not isinstance(document, str) or not document:
            return
        self.document = document
        try:
            self.cards = [Flashcard.model_validate(c) for c in self.store.get(CARDS_KEY) or []]
        except (ValidationError, TypeError) as e:
            print(f"Warning: Discarding unreadable stored flashcards: {e}")
            self.cards = []
        print(f"Restored document with {len(self.cards)} flashcards")

    def _save(self, key: str, value) -> None:
        try:
            self.store.set(key, value)
        except Exception as e:
            print(f"Warning: Could not save {key} to the store: {e}")

    def _forget(self, key: str) -> None:
        try:
            self.store.clear(key)
        except Exception as e:
            print(f"Warning: Could not clear {key} from the store: {e}")

    def _persist_cards(self) -> None:
        self._save(CARDS_KEY, [card.model_dump(mode="json") for card in self.cards])

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.cards)

    @property
    def titles(self) -> List[str]:
        return [card.title for card in self.cards]

    async def load_document(self, text: str) -> None:
        """Start a fresh deck for a new document and fetch its first card."""
        self._token += 1
        self.document = text
        self.cards = []
        self.cursor = 0
        self.last_error = None
        self.status = DeckStatus.idle
        self._save(DOCUMENT_KEY, text)
        self._persist_cards()
        # An empty deck is exhausted, so the first card is needed straight away
        await self.request_card()

    async def request_card(self) -> None:
        if self.status == DeckStatus.loading or self.document is None:
            return

        token = self._token
        self.status = DeckStatus.loading
        try:
            fields = await self.generator.generate(self.document, self.titles)
            card = Flashcard(**fields.model_dump())
        except GenerationError as e:
            print(f"Flashcard generation failed: {e.message}")
            self._record_error(token, e.message)
        except Exception as e:
            print(f"Unexpected error while generating flashcard: {e}")
            self._record_error(token, UNKNOWN_ERROR_MESSAGE)
        else:
            if self._is_current(token):
                self.cards.append(card)
                self.last_error = None
                self._persist_cards()
        finally:
            # The status belongs to whichever document is loaded now
            if token == self._token:
                self.status = DeckStatus.idle

    def _is_current(self, token: int) -> bool:
        if token != self._token:
            print("Discarding flashcard result for a document that is no longer loaded")
            return False
        return True

    def _record_error(self, token: int, message: str) -> None:
        if self._is_current(token):
            self.last_error = message

    async def advance(self) -> None:
        """Dismiss the current card; backfill when the deck runs out."""
        self.cursor += 1
        if self.exhausted and self.status == DeckStatus.idle and self.document is not None:
            await self.request_card()

    def reset_deck(self) -> None:
        self._token += 1
        self.document = None
        self.cards = []
        self.cursor = 0
        self.last_error = None
        self.status = DeckStatus.idle
        self._forget(DOCUMENT_KEY)
        self._forget(CARDS_KEY)

    def view(self) -> DeckView:
        total = len(self.cards)
        exhausted = self.exhausted
        return DeckView(
            has_document=self.document is not None,
            cursor=self.cursor,
            total=total,
            position=min(self.cursor + 1, total),
            status=self.status,
            error=self.last_error,
            exhausted=exhausted,
            caught_up=self.status == DeckStatus.idle and total > 0 and exhausted and self.last_error is None,
            cards=self.cards[self.cursor:self.cursor + 1 + self.lookahead],
        )
