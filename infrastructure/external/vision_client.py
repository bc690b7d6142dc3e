# infrastructure/external/vision_client.py

import httpx
import logging
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timezone

from app.settings import VisionConfig, settings
from core.exceptions import VisionModelError
from shared.decorators.retry import retry

logger = logging.getLogger(__name__)

JPEG_MIME_TYPE = "image/jpeg"
JSON_MIME_TYPE = "application/json"


class VisionModelClient:
    """
    Client for a Gemini-style ``generateContent`` endpoint.

    ``generate`` sends one instruction plus an ordered list of base64 JPEG
    frames and returns the reply text. Failures raise; callers decide how to
    degrade.
    """

    def __init__(
        self,
        config: Optional[VisionConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or settings.vision
        self.base_url = self.config.base_url.rstrip("/")

        # HTTP client config
        self.client_config: Dict[str, Any] = {
            "timeout": httpx.Timeout(self.config.timeout),
            "headers": {
                "x-goog-api-key": self.config.api_key,
                "Content-Type": JSON_MIME_TYPE,
                "User-Agent": "CameraShare-Core/1.0",
            },
        }
        if transport is not None:
            self.client_config["transport"] = transport

        # Only transport-level faults are worth another attempt
        self._post_with_retry = retry(
            max_attempts=self.config.max_retries,
            delay=0.5,
            exceptions=[httpx.TransportError],
        )(self._post)

        # Stats
        self.request_count = 0
        self.success_count = 0
        self.error_count = 0
        self.last_request_time: Optional[datetime] = None

    # -----------------------------
    # Generation
    # -----------------------------
    async def generate(
        self,
        instruction: str,
        images: Sequence[str] = (),
        structured: bool = False,
        model: Optional[str] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        """
        Run one generation call.

        Args:
            instruction: Prompt text, sent after the images
            images: Base64 JPEG payloads in capture order
            structured: Ask the model for a JSON reply
            model: Model override (defaults to ``config.default_model``)
            tools: Optional tool declarations (e.g. maps grounding)

        Returns:
            Concatenated text parts of the first candidate.
        """
        model_name = model or self.config.default_model
        endpoint = f"{self.base_url}/models/{model_name}:generateContent"
        payload = self.build_payload(instruction, images, structured, tools)

        self.request_count += 1
        self.last_request_time = datetime.now(timezone.utc)

        try:
            response = await self._post_with_retry(endpoint, payload)
        except httpx.HTTPError as e:
            self.error_count += 1
            logger.error(f"🔌 Vision model unreachable ({model_name}): {e}")
            raise

        if response.status_code != 200:
            self.error_count += 1
            logger.warning(f"⚠️ Vision model returned {response.status_code}: {response.text[:200]}")
            raise VisionModelError(
                f"Vision model returned HTTP {response.status_code}",
                status_code=response.status_code,
                response_text=response.text,
            )

        try:
            text = self.extract_text(response.json())
        except (ValueError, VisionModelError) as e:
            self.error_count += 1
            logger.warning(f"⚠️ Malformed vision model response: {e}")
            if isinstance(e, VisionModelError):
                raise
            raise VisionModelError("Vision model response is not JSON", response_text=response.text) from e

        self.success_count += 1
        logger.debug(f"✅ Vision model replied ({model_name}, {len(images)} frame(s), {len(text)} chars)")
        return text

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(**self.client_config) as client:
            return await client.post(endpoint, json=payload)

    # -----------------------------
    # Wire format helpers
    # -----------------------------
    @staticmethod
    def build_payload(
        instruction: str,
        images: Sequence[str],
        structured: bool = False,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """Images first, in order, then the instruction text."""
        parts: List[Dict[str, Any]] = [
            {"inlineData": {"mimeType": JPEG_MIME_TYPE, "data": image}}
            for image in images
        ]
        parts.append({"text": instruction})

        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if structured:
            payload["generationConfig"] = {"responseMimeType": JSON_MIME_TYPE}
        if tools:
            payload["tools"] = tools
        return payload

    @staticmethod
    def extract_text(body: Dict[str, Any]) -> str:
        """Join the text parts of the first candidate"""
        candidates = body.get("candidates") if isinstance(body, dict) else None
        if not candidates:
            raise VisionModelError("Vision model response has no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        if not texts:
            reason = candidates[0].get("finishReason", "unknown")
            raise VisionModelError(f"Vision model response has no text (finishReason={reason})")
        return "".join(texts)

    # -----------------------------
    # Stats
    # -----------------------------
    def get_stats(self) -> Dict[str, Any]:
        """Client statistics"""
        success_rate = (
            (self.success_count / self.request_count * 100)
            if self.request_count > 0
            else 0
        )

        return {
            "total_requests": self.request_count,
            "successful_requests": self.success_count,
            "failed_requests": self.error_count,
            "success_rate_percent": round(success_rate, 2),
            "last_request_time": self.last_request_time.isoformat()
            if self.last_request_time
            else None,
            "base_url": self.base_url,
        }
