"""
Google Gemini generation client.
Builds generateContent requests from a conversation and classifies the response.
"""

import httpx
import json
import logging
import time
from typing import Optional, List, Dict, Any, Mapping, Sequence

from .base import (
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    DEFAULT_TOP_P,
    VALID_ROLES,
    GenerationClient,
    GenerationError,
)
from ..core.logging_config import truncate_large_data

logger = logging.getLogger(__name__)

# Synthetic model turn that follows the persona instruction
PERSONA_ACKNOWLEDGEMENT = "Ok, entendi. Sou um fã da FURIA pronto para conversar!"

SAFETY_BLOCKED_MESSAGE = "The response was blocked for safety reasons."
RECITATION_BLOCKED_MESSAGE = "The response was blocked due to citation (recitation) concerns."
INTERRUPTED_MESSAGE = "The response was interrupted for an unspecified reason."
INVALID_FORMAT_MESSAGE = "Invalid response format from the generation API."


def _dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
        elif not isinstance(current, dict):
            return None
        else:
            if step not in current:
                return None
        current = current[step]
    return current


def build_contents(
    prompt: str,
    history: Sequence[Mapping[str, Any]] = (),
    persona_instruction: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Build the ``contents`` array for a generateContent request.

    Gemini has no system role, so a persona is primed as a user turn followed
    by a canned model acknowledgement. Malformed history entries are skipped.
    """
    contents: List[Dict[str, Any]] = []

    if persona_instruction:
        contents.append({"role": "user", "parts": [{"text": persona_instruction}]})
        contents.append({"role": "model", "parts": [{"text": PERSONA_ACKNOWLEDGEMENT}]})

    for entry in history:
        role = entry.get("role") if isinstance(entry, Mapping) else None
        text = entry.get("text") if isinstance(entry, Mapping) else None
        if role in VALID_ROLES and text:
            contents.append({"role": role, "parts": [{"text": text}]})
        else:
            logger.warning(f"Skipping invalid history entry: {entry!r}")

    contents.append({"role": "user", "parts": [{"text": prompt}]})
    return contents


def build_generation_config(
    temperature: Optional[float] = DEFAULT_TEMPERATURE,
    top_p: Optional[float] = DEFAULT_TOP_P,
    top_k: Optional[int] = DEFAULT_TOP_K,
) -> Dict[str, Any]:
    """Build ``generationConfig``, leaving out parameters that are not set."""
    config = {"temperature": temperature, "topP": top_p, "topK": top_k}
    return {name: value for name, value in config.items() if value is not None}


class GeminiClient(GenerationClient):
    """
    Client for the Gemini ``models/{model}:generateContent`` endpoint.
    The API key travels as the ``key`` query parameter.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-1.5-flash-latest",
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1beta",
        timeout: float = 60.0,
        connect_timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = httpx.Timeout(timeout, connect=connect_timeout)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.api_version}/models/{self.model}:generateContent"

    async def generate(
        self,
        prompt: str,
        history: Sequence[Mapping[str, Any]] = (),
        persona_instruction: Optional[str] = None,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        top_p: Optional[float] = DEFAULT_TOP_P,
        top_k: Optional[int] = DEFAULT_TOP_K,
    ) -> Optional[str]:
        """Send one generateContent request and return the reply text."""
        if not self.api_key:
            message = "GEMINI_API_KEY is not configured in the environment."
            logger.error(message)
            raise GenerationError(message)

        payload: Dict[str, Any] = {
            "contents": build_contents(prompt, history, persona_instruction),
            "generationConfig": build_generation_config(temperature, top_p, top_k),
        }

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Gemini call starting: model={self.model}, "
                f"turns={len(payload['contents'])}, config={payload['generationConfig']}"
            )

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling the Gemini API: {e!r}")
            raise GenerationError(f"Timeout communicating with the generation API: {e!r}") from e
        except httpx.ConnectError as e:
            logger.error(f"Connection to the Gemini API failed: {e!r}")
            raise GenerationError(f"Connection to the generation API failed: {e!r}") from e
        except httpx.HTTPError as e:
            logger.error(f"Unexpected transport error calling the Gemini API: {e!r}")
            raise GenerationError(f"Communication error with the generation API: {e!r}") from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Gemini call completed",
            extra={"extra_fields": {
                "model": self.model,
                "status_code": resp.status_code,
                "duration_ms": round(duration_ms, 2),
            }}
        )

        if resp.is_success:
            return self._parse_successful_response(resp.text)
        self._handle_failed_response(resp)

    def _parse_successful_response(self, body: str) -> Optional[str]:
        try:
            data = json.loads(body)
        except ValueError as e:
            logger.error(
                f"Could not parse successful Gemini response as JSON: {e} - "
                f"body: {truncate_large_data(body, 1000)}"
            )
            raise GenerationError(INVALID_FORMAT_MESSAGE) from e

        if not isinstance(data, dict):
            logger.error(f"Successful Gemini response is not a JSON object: {truncate_large_data(body, 1000)}")
            raise GenerationError(INVALID_FORMAT_MESSAGE)

        text = _dig(data, "candidates", 0, "content", "parts", 0, "text")
        if text is None:
            return self._handle_response_without_text(data)
        if not isinstance(text, str):
            logger.error(f"Gemini response text is not a string: {text!r}")
            raise GenerationError(INVALID_FORMAT_MESSAGE)
        return text

    def _handle_response_without_text(self, data: Any) -> Optional[str]:
        finish_reason = _dig(data, "candidates", 0, "finishReason")
        logger.error(
            f"Gemini response without text. finishReason={finish_reason}, "
            f"safetyRatings={_dig(data, 'candidates', 0, 'safetyRatings')}, "
            f"promptFeedback={_dig(data, 'promptFeedback')}"
        )

        if finish_reason == "SAFETY":
            raise GenerationError(SAFETY_BLOCKED_MESSAGE, public_detail=SAFETY_BLOCKED_MESSAGE)
        if finish_reason == "RECITATION":
            raise GenerationError(RECITATION_BLOCKED_MESSAGE, public_detail=RECITATION_BLOCKED_MESSAGE)
        if finish_reason == "OTHER":
            raise GenerationError(INTERRUPTED_MESSAGE, public_detail=INTERRUPTED_MESSAGE)
        if finish_reason == "STOP":
            # Stopped normally but produced no text
            return ""
        # Unknown or missing finishReason
        return None

    def _handle_failed_response(self, resp: httpx.Response) -> None:
        upstream_message = None
        try:
            error_body = json.loads(resp.text)
        except ValueError:
            details = resp.text
        else:
            upstream_message = _dig(error_body, "error", "message")
            details = upstream_message or repr(error_body)

        message = f"Gemini API error (status: {resp.status_code}): {details}"
        logger.error(truncate_large_data(message, 2000))
        raise GenerationError(message, status_code=resp.status_code, public_detail=upstream_message)
