"""Sensory drink descriptions from Gemini, with a local fallback.

Generation is optional: without an API key, or when the call fails, the admin
still gets a templated description listing the ingredients.
"""

import logging
from typing import Optional, Sequence

import httpx

from partybar import config

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def fallback_description(name: str, ingredients: Sequence[str]) -> str:
    return (
        f"A delicious blend of {', '.join(ingredients)} "
        f"with the unique sensory notes of {name}."
    )


class GeminiDescriptionGenerator:
    def __init__(
        self,
        api_key: str = config.GEMINI_API_KEY,
        model: str = config.GEMINI_MODEL,
        timeout: float = config.DESCRIPTION_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, name: str, ingredients: Sequence[str]) -> str:
        """Ask Gemini for a short description. Raises httpx errors or KeyError/ValueError."""
        prompt = (
            f'Write a short, seductive and creative sensory description (25 words at most) '
            f'for a drink called "{name}" made with: {", ".join(ingredients)}. '
            f'The tone should be sophisticated and inviting.'
        )
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {"x-goog-api-key": self.api_key}
        url = GEMINI_URL.format(model=self.model)

        if self._client is not None:
            response = self._client.post(url, json=body, headers=headers, timeout=self.timeout)
        else:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=body, headers=headers)
        response.raise_for_status()

        text = response.json()["candidates"][0]["content"]["parts"][0]["text"].strip()
        if not text:
            raise ValueError("Empty description returned")
        return text


def describe_drink(
    name: str,
    ingredients: Sequence[str],
    generator: Optional[GeminiDescriptionGenerator] = None,
) -> str:
    """
    Return a sensory description for a drink.
    Never raises: a missing key or any generator failure falls back to the template.
    """
    if generator is None or not generator.configured:
        logger.warning(
            "Description generator not configured (GEMINI_API_KEY not set); "
            "using templated description for %s.", name
        )
        return fallback_description(name, ingredients)

    try:
        return generator.generate(name, ingredients)
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("Description generation failed for %s: %s", name, exc)
        return fallback_description(name, ingredients)
