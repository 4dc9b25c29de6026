"""Ethical Media Analyzer - LLM client
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Thin async adapter over the supported LLM providers. It only moves text
and bytes across the boundary; parsing and validation live in
response_parser.

Supports:
- Google Gemini (native JSON schema output, inline audio/video)
- OpenAI (JSON mode, Whisper for media transcription)
- Anthropic (schema described in the system prompt, no media input)
"""

import json
import logging
import mimetypes
from typing import Optional

from config import Settings
from errors import ConfigurationError
from prompts import PromptRequest

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 8192
OPENAI_TRANSCRIPTION_MODEL = "whisper-1"

SCHEMA_INSTRUCTION_TEMPLATE = """

Respond with ONLY valid JSON (no markdown, no code fences) matching this JSON schema:
{schema}"""


class LLMProviderError(Exception):
    """The provider could not serve the request."""


class LLMClient:
    """
    Provider-switching client used by every component that talks to a model.

    The settings object is validated before this is constructed; an unknown
    provider or a missing SDK is a configuration error, not a request error.
    """

    def __init__(self, settings: Settings):
        """
        Initialize the client for the configured provider.

        Args:
            settings: validated application settings (provider, api_key, model)
        """
        self.provider = settings.provider
        self.model = settings.model
        self._api_key = settings.api_key
        self._gemini_client = None
        self._openai_client = None
        self._anthropic_client = None

        self._init_client()

        logger.info(f"🧠 LLM client initialized: provider={self.provider}, model={self.model}")

    def _init_client(self):
        """Create the SDK client for the configured provider."""
        if not self._api_key:
            raise ConfigurationError(f"No API key configured for provider '{self.provider}'")

        if self.provider == "gemini":
            try:
                from google import genai
            except ImportError as e:
                raise ConfigurationError("google-genai package not installed. Run: pip install google-genai") from e
            self._gemini_client = genai.Client(api_key=self._api_key)

        elif self.provider == "openai":
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise ConfigurationError("openai package not installed. Run: pip install openai") from e
            self._openai_client = AsyncOpenAI(api_key=self._api_key)

        elif self.provider == "anthropic":
            try:
                from anthropic import AsyncAnthropic
            except ImportError as e:
                raise ConfigurationError("anthropic package not installed. Run: pip install anthropic") from e
            self._anthropic_client = AsyncAnthropic(api_key=self._api_key)

        else:
            raise ConfigurationError(f"Unsupported AI provider: {self.provider}")

    # ------------------------------------------------------------------ #
    #  Structured (JSON) generation                                      #
    # ------------------------------------------------------------------ #

    async def generate_structured_content(self, request: PromptRequest) -> str:
        """
        Ask the model for a JSON object shaped like ``request.schema``.

        Returns the raw reply text. The provider is expected, not guaranteed,
        to conform to the schema.
        """
        if self.provider == "gemini":
            text = await self._structured_with_gemini(request)
        elif self.provider == "openai":
            text = await self._structured_with_openai(request)
        else:
            text = await self._structured_with_anthropic(request)

        logger.info(f"🧠 {self.provider} structured reply: {len(text)} chars")
        return text

    async def _structured_with_gemini(self, request: PromptRequest) -> str:
        from google.genai import types

        response = await self._gemini_client.aio.models.generate_content(
            model=self.model,
            contents=request.user_text,
            config=types.GenerateContentConfig(
                system_instruction=request.instruction_text,
                temperature=request.temperature,
                response_mime_type="application/json",
                response_schema=request.schema,
            ),
        )
        return response.text or ""

    def _instruction_with_schema(self, request: PromptRequest) -> str:
        return request.instruction_text + SCHEMA_INSTRUCTION_TEMPLATE.format(
            schema=json.dumps(request.schema, indent=2)
        )

    async def _structured_with_openai(self, request: PromptRequest) -> str:
        response = await self._openai_client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": self._instruction_with_schema(request)},
                {"role": "user", "content": request.user_text},
            ],
            temperature=request.temperature,
            max_tokens=MAX_OUTPUT_TOKENS,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""

    async def _structured_with_anthropic(self, request: PromptRequest) -> str:
        response = await self._anthropic_client.messages.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            system=self._instruction_with_schema(request),
            messages=[{"role": "user", "content": request.user_text}],
            temperature=request.temperature,
        )
        # Fences, if any, are stripped by the response parser
        return response.content[0].text.strip()

    # ------------------------------------------------------------------ #
    #  Free text generation                                              #
    # ------------------------------------------------------------------ #

    async def generate_text(self, prompt: str, temperature: float = 0.1) -> str:
        """Single-turn free text generation (used for SVG markup)."""
        if self.provider == "gemini":
            from google.genai import types

            response = await self._gemini_client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(temperature=temperature),
            )
            return response.text or ""

        if self.provider == "openai":
            response = await self._openai_client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=MAX_OUTPUT_TOKENS,
            )
            return response.choices[0].message.content or ""

        response = await self._anthropic_client.messages.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        return response.content[0].text

    # ------------------------------------------------------------------ #
    #  Media transcription                                               #
    # ------------------------------------------------------------------ #

    async def generate_from_media(
        self,
        media_bytes: bytes,
        mime_type: str,
        instruction_text: str,
        filename: Optional[str] = None,
    ) -> str:
        """
        Send raw audio/video to the model and return its text reply.

        Args:
            media_bytes: file contents
            mime_type: e.g. "audio/mpeg", "video/mp4"
            instruction_text: what to do with the media (transcribe it)
            filename: original name, used by providers that need an extension
        """
        if self.provider == "gemini":
            from google.genai import types

            response = await self._gemini_client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=media_bytes, mime_type=mime_type),
                    instruction_text,
                ],
            )
            text = response.text or ""

        elif self.provider == "openai":
            if not filename:
                extension = mimetypes.guess_extension(mime_type or "") or ".mp3"
                filename = f"media{extension}"
            transcription = await self._openai_client.audio.transcriptions.create(
                model=OPENAI_TRANSCRIPTION_MODEL,
                file=(filename, media_bytes, mime_type),
            )
            text = transcription.text or ""

        else:
            raise LLMProviderError(
                f"Provider '{self.provider}' does not support audio/video input. "
                "Use AI_PROVIDER=gemini or AI_PROVIDER=openai for file analysis."
            )

        logger.info(f"🎙️ Transcribed {len(media_bytes)} bytes ({mime_type}) → {len(text)} chars")
        return text.strip()
