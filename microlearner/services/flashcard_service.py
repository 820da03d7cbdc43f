import json
from typing import List, Protocol

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from microlearner.schemas.flashcard import CardFields, Mood

MAX_DOCUMENT_CHARS = 32000

MISSING_KEY_MESSAGE = (
    "Could not connect to the AI service. The API key is missing or invalid. "
    "Please ensure it's configured correctly in the environment."
)
MALFORMED_MESSAGE = "The AI returned an invalid response. Please try again."
INCOMPLETE_MESSAGE = "AI failed to generate a complete flashcard. Please try again."
UNAVAILABLE_MESSAGE = "The AI service is currently unavailable. Please try again in a moment."

FLASHCARD_SCHEMA = {
    "name": "flashcard",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "title": {
                "type": "string",
                "description": "A short, engaging title for the flashcard topic. Max 5-7 words.",
            },
            "content": {
                "type": "string",
                "description": "A concise, easy-to-understand piece of micro-information. Max 2-3 sentences.",
            },
            "category": {
                "type": "string",
                "description": "A single-word category for the content (e.g., 'Productivity', 'History', 'Science').",
            },
            "mood": {
                "type": "string",
                "enum": [mood.value for mood in Mood],
                "description": "The dominant mood or tone of the content.",
            },
            "icon": {
                "type": "string",
                "description": "A single emoji that visually represents the content's category or theme.",
            },
        },
        "required": ["title", "content", "category", "mood", "icon"],
        "additionalProperties": False,
    },
}


class GenerationError(Exception):
    """Base class for failures producing a card. The message is shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ServiceUnavailable(GenerationError):
    pass


class Unauthorized(GenerationError):
    pass


class MalformedResponse(GenerationError):
    def __init__(self, message: str = MALFORMED_MESSAGE):
        super().__init__(message)


class IncompleteResult(GenerationError):
    def __init__(self, message: str = INCOMPLETE_MESSAGE):
        super().__init__(message)


class CardGenerator(Protocol):
    async def generate(self, document_text: str, excluded_titles: List[str]) -> CardFields: ...


def build_prompt(document_text: str, excluded_titles: List[str], max_chars: int = MAX_DOCUMENT_CHARS) -> str:
    if excluded_titles:
        exclusions = "\n".join(f"- {title}" for title in excluded_titles)
    else:
        exclusions = "N/A"
    return (
        f"Based on the following book content, create a single, concise micro-learning flashcard.\n"
        f"The flashcard should have a 'title', 'content', and styling information ('category', 'mood', 'icon').\n"
        f"The content should be a small, digestible piece of information, ideal for quick learning.\n"
        f"It must be a distinct concept not covered by the existing titles provided.\n\n"
        f"Analyze the content to determine the styling:\n"
        f"- 'category': A single word describing the topic.\n"
        f"- 'mood': The feeling of the content. Must be one of {', '.join(repr(m.value) for m in Mood)}.\n"
        f"- 'icon': A single emoji that fits the topic.\n\n"
        f"IMPORTANT: Do NOT generate a flashcard on any of the following topics, as they have already been created:\n"
        f"{exclusions}\n\n"
        f"The response must be in JSON format conforming to the provided schema.\n\n"
        f"Book Content (a snippet is provided for context):\n"
        f'"""\n{document_text[:max_chars]}...\n"""'
    )


def parse_card(text: str) -> CardFields:
    """Validate the raw model output as one card."""
    text = (text or "").strip()
    # The model sometimes wraps the JSON in markdown backticks
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise MalformedResponse() from e
    if not isinstance(data, dict):
        raise MalformedResponse()
    try:
        return CardFields.model_validate(data)
    except ValidationError as e:
        raise IncompleteResult() from e


class FlashcardGenerator:
    """Asks the chat model for one flashcard at a time."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini", max_chars: int = MAX_DOCUMENT_CHARS):
        self._client = client
        self.model = model
        self.max_chars = max_chars

    async def generate(self, document_text: str, excluded_titles: List[str]) -> CardFields:
        prompt = build_prompt(document_text, excluded_titles, self.max_chars)
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_schema", "json_schema": FLASHCARD_SCHEMA},
                temperature=0.8,
                top_p=0.95,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            print(f"Error generating flashcard: {e}")
            raise Unauthorized(MISSING_KEY_MESSAGE) from e
        except (openai.APIConnectionError, openai.RateLimitError, openai.APIStatusError) as e:
            # APITimeoutError is a subclass of APIConnectionError
            print(f"Error generating flashcard: {e}")
            raise ServiceUnavailable(UNAVAILABLE_MESSAGE) from e

        if not response.choices:
            raise MalformedResponse()
        return parse_card(response.choices[0].message.content)


class UnconfiguredGenerator:
    """Stands in for the AI client when no API key was configured."""

    async def generate(self, document_text: str, excluded_titles: List[str]) -> CardFields:
        raise Unauthorized(MISSING_KEY_MESSAGE)
