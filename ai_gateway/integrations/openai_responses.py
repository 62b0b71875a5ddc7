from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from ai_gateway.core.settings import settings
from ai_gateway.utils.perf import perf_span


def _has_image(input_items: list[dict[str, Any]]) -> bool:
    for item in input_items:
        content = item.get("content")
        if isinstance(content, list) and any(isinstance(c, dict) and c.get("type") == "input_image" for c in content):
            return True
    return False


class ModelClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ImageAttachment:
    content: bytes
    mime_type: str

    def data_url(self) -> str:
        b64 = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.mime_type};base64,{b64}"


def build_input(
    system: str,
    user_text: str,
    *,
    image: ImageAttachment | None = None,
    image_caption: str | None = None,
) -> list[dict[str, Any]]:
    """Responses API `input`: system instructions, the user text, then the chart if any."""
    items: list[dict[str, Any]] = [
        {"role": "system", "content": system},
        {"role": "user", "content": user_text},
    ]
    if image is not None:
        content: list[dict[str, Any]] = [{"type": "input_image", "image_url": image.data_url()}]
        if image_caption:
            content.append({"type": "input_text", "text": image_caption})
        items.append({"role": "user", "content": content})
    return items


def extract_output_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    direct = data.get("output_text")
    if isinstance(direct, str) and direct:
        return direct

    # Raw HTTP responses carry the text inside output[].content[] parts.
    parts: list[str] = []
    for item in data.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for c in item.get("content") or []:
            if isinstance(c, dict) and c.get("type") == "output_text" and isinstance(c.get("text"), str):
                parts.append(c["text"])
    return "".join(parts)


@dataclass(frozen=True)
class ModelConfig:
    base_url: str
    model: str
    api_key: str | None
    timeout_seconds: float

    @classmethod
    def from_settings(cls) -> "ModelConfig":
        return cls(
            base_url=str(settings.OPENAI_BASE_URL or "").rstrip("/"),
            model=str(settings.OPENAI_MODEL),
            api_key=(settings.OPENAI_API_KEY or "").strip() or None,
            timeout_seconds=float(settings.OPENAI_TIMEOUT_SECONDS or 60.0),
        )


class ModelClient:
    """One-shot calls to the Responses API. No retries: a failure ends the request."""

    def __init__(self, cfg: ModelConfig | None = None, *, transport: httpx.BaseTransport | None = None) -> None:
        self.cfg = cfg or ModelConfig.from_settings()
        self._transport = transport

    def respond(self, input_items: list[dict[str, Any]], *, json_mode: bool = False) -> str:
        if not self.cfg.api_key:
            raise ModelClientError("OPENAI_API_KEY is not configured")

        payload: dict[str, Any] = {"model": self.cfg.model, "input": input_items}
        if json_mode:
            payload["text"] = {"format": {"type": "json_object"}}

        url = f"{self.cfg.base_url}/responses"
        headers = {
            "Authorization": f"Bearer {self.cfg.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        with perf_span("model.respond", model=self.cfg.model, json_mode=json_mode, has_image=_has_image(input_items)) as span:
            try:
                with httpx.Client(timeout=httpx.Timeout(self.cfg.timeout_seconds), transport=self._transport) as client:
                    r = client.post(url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                raise ModelClientError(f"model request failed: {e}") from e
            span["http_status"] = r.status_code

        if r.status_code >= 400:
            logger.warning("model HTTP {status}: {body}", status=r.status_code, body=r.text[:500])
            raise ModelClientError(f"model HTTP {r.status_code}")

        try:
            data = r.json()
        except ValueError as e:
            raise ModelClientError("model returned a non-JSON envelope") from e
        return extract_output_text(data)


def get_model_client() -> ModelClient:
    return ModelClient()
