"""
Essay Tutor — AI Provider Layer
================================
One seam between the tutoring clients and the generative-AI SDKs:

    await provider.generate_json(system_instruction=..., prompt=..., response_schema=...)

Implementations:
  - GeminiProvider  (google-generativeai, native response_schema, inline images)
  - GroqProvider    (groq, JSON mode with the schema embedded in the prompt)

Every SDK failure comes out as TransportError / AuthError, and every call is
bounded by AI_TIMEOUT_SECONDS. Payload parsing lives here too.
"""

import abc
import asyncio
import base64
import json
import logging
import re
from typing import Any, Dict, Optional

import google.generativeai as genai
import groq
from google.api_core import exceptions as google_exceptions
from groq import AsyncGroq

from essay_tutor.core.config import Settings, settings
from essay_tutor.core.errors import AuthError, SchemaError, TransportError

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/jpeg"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JSON RECOVERY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def clean_and_parse_json(raw_text: Optional[str]) -> Dict[str, Any]:
    """
    Robust JSON extractor:
    1. Empty / missing payload -> {} (the caller's validation rejects it)
    2. Strip markdown code fences (```json ... ```)
    3. Extract first { ... } block
    4. Parse with json.loads
    Raises SchemaError when the text is not a JSON object.
    """
    if not raw_text or not raw_text.strip():
        logger.warning("[AI] Empty payload received, treating as {}")
        return {}

    cleaned = raw_text.strip()

    # Strategy 1: Remove ```json ... ``` wrapper
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    # Strategy 2: Find the first { ... } block (greedy from first { to last })
    if not cleaned.startswith("{"):
        brace_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if brace_match:
            cleaned = brace_match.group(0)

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"[AI] JSON parse failed. Raw (first 500 chars): {raw_text[:500]}")
        raise SchemaError(f"AI returned invalid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise SchemaError(f"AI returned a JSON {type(parsed).__name__}, expected an object")
    return parsed


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PROVIDERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AIProvider(abc.ABC):
    """Sends one prompt and returns the raw JSON text of the reply."""

    name = "provider"

    def __init__(self, config: Settings = settings):
        self.config = config

    async def generate_json(
        self,
        *,
        system_instruction: str,
        prompt: str,
        response_schema: Dict[str, Any],
        image: Optional[bytes] = None,
        temperature: Optional[float] = None,
    ) -> str:
        try:
            return await asyncio.wait_for(
                self._generate(system_instruction, prompt, response_schema, image, temperature),
                timeout=self.config.AI_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"{self.name} did not answer within {self.config.AI_TIMEOUT_SECONDS}s"
            ) from e

    @abc.abstractmethod
    async def _generate(
        self,
        system_instruction: str,
        prompt: str,
        response_schema: Dict[str, Any],
        image: Optional[bytes],
        temperature: Optional[float],
    ) -> str:
        ...


class GeminiProvider(AIProvider):
    """Gemini via google-generativeai, REST transport."""

    name = "Gemini"

    _configured_key: Optional[str] = None

    def _ensure_configured(self) -> None:
        api_key = self.config.GOOGLE_API_KEY
        if not api_key:
            raise AuthError("Google API Key missing")
        if GeminiProvider._configured_key != api_key:
            genai.configure(api_key=api_key, transport="rest")
            GeminiProvider._configured_key = api_key
            logger.info("[AI] ✓ Gemini client configured")

    async def _generate(self, system_instruction, prompt, response_schema, image, temperature):
        self._ensure_configured()

        generation_config: Dict[str, Any] = {
            "response_mime_type": "application/json",
            "response_schema": response_schema,
        }
        if temperature is not None:
            generation_config["temperature"] = temperature

        model = genai.GenerativeModel(
            model_name=self.config.GEMINI_MODEL,
            system_instruction=system_instruction,
            generation_config=generation_config,
        )

        contents: list = []
        if image:
            contents.append({"mime_type": IMAGE_MIME_TYPE, "data": image})
        contents.append(prompt)

        logger.info(f"[AI] Calling Gemini ({self.config.GEMINI_MODEL}, image={bool(image)})...")
        try:
            response = await asyncio.to_thread(model.generate_content, contents)
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise AuthError(f"Gemini rejected the credential: {e}") from e
        except google_exceptions.BadRequest as e:
            if "api key" in str(e).lower():
                raise AuthError(f"Gemini rejected the credential: {e}") from e
            raise TransportError(f"Gemini call failed: {e}") from e
        except Exception as e:
            raise TransportError(f"Gemini call failed: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # No candidate text (blocked or empty); validation downstream rejects it.
            logger.warning(f"[AI] Gemini returned no text: {e}")
            return ""
        logger.info("[AI] ✓ Gemini call succeeded")
        return text


class GroqProvider(AIProvider):
    """Groq chat completions in JSON mode."""

    name = "Groq"

    def __init__(self, config: Settings = settings):
        super().__init__(config)
        self._client: Optional[AsyncGroq] = None

    def _get_client(self) -> AsyncGroq:
        if not self.config.GROQ_API_KEY:
            raise AuthError("Groq API Key missing")
        if self._client is None:
            self._client = AsyncGroq(api_key=self.config.GROQ_API_KEY)
            logger.info("[AI] ✓ Groq client initialized")
        return self._client

    async def _generate(self, system_instruction, prompt, response_schema, image, temperature):
        client = self._get_client()

        system_prompt = (
            f"{system_instruction}\n\n"
            "Output MUST be valid JSON matching this EXACT schema:\n"
            f"{json.dumps(response_schema, ensure_ascii=False)}"
        )
        if image:
            encoded = base64.b64encode(image).decode("ascii")
            user_content: Any = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": f"data:{IMAGE_MIME_TYPE};base64,{encoded}"}},
            ]
            model = self.config.GROQ_VISION_MODEL
        else:
            user_content = prompt
            model = self.config.GROQ_MODEL

        logger.info(f"[AI] Calling Groq ({model})...")
        try:
            completion = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                response_format={"type": "json_object"},
                temperature=temperature if temperature is not None else 0,
                max_tokens=8000,
            )
        except (groq.AuthenticationError, groq.PermissionDeniedError) as e:
            raise AuthError(f"Groq rejected the credential: {e}") from e
        except groq.APIError as e:
            raise TransportError(f"Groq call failed: {e}") from e

        logger.info("[AI] ✓ Groq call succeeded")
        return completion.choices[0].message.content or ""


def build_provider(config: Settings = settings) -> AIProvider:
    """Pick the provider named by AI_PROVIDER."""
    logger.info(f"[INIT] AI_PROVIDER set to: {config.AI_PROVIDER}")
    if config.AI_PROVIDER == "groq":
        return GroqProvider(config)
    return GeminiProvider(config)
