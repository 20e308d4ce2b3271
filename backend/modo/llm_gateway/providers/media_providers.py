# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  媒体生成提供商 - Fal / Stability / Replicate / ModelsLab / ElevenLabs（httpx）
  Media providers - REST adapters for image, video and audio vendors built on
  httpx.AsyncClient. Queue-based vendors are polled until the job settles.
"""

import asyncio
import base64
from typing import Any, Dict, Optional

import httpx

from modo.config import config
from modo.exceptions import ProviderError
from modo.llm_gateway.providers.base import BaseMediaProvider
from modo.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_NEGATIVE_PROMPT = "blurry, low quality, distorted, deformed, watermark, text"


def _poll_settings() -> Dict[str, float]:
    generation = config.get("generation", {})
    return {
        "interval": float(generation.get("poll_interval_seconds", 2)),
        "attempts": int(generation.get("poll_max_attempts", 60)),
    }


class _HttpMediaProvider(BaseMediaProvider):
    """Shared httpx plumbing for REST media vendors."""

    provider_name = "media"
    default_base_url = ""

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None, timeout: float = 30.0):
        super().__init__(api_key, model, base_url or self.default_base_url, timeout)
        polling = _poll_settings()
        self.poll_interval = polling["interval"]
        self.poll_max_attempts = polling["attempts"]

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = await client.request(method, url, headers=self._headers(), **kwargs)
        if response.status_code >= 400:
            raise ProviderError(
                f"{self.provider_name} API error {response.status_code}: {response.text[:300]}",
                provider=self.provider_name,
                retryable=response.status_code == 429 or response.status_code >= 500,
            )
        return response

    def get_provider_name(self) -> str:
        return self.provider_name


class FalProvider(_HttpMediaProvider):
    """
    Fal.ai 队列提供商 / Fal.ai queue provider

    Submits to ``{base}/{model}`` and polls ``{base}/{model}/requests/{id}/status``
    until the job is COMPLETED, then fetches the result.
    """

    provider_name = "fal"
    default_base_url = "https://queue.fal.run"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Key {self.api_key}", "Content-Type": "application/json"}

    def _build_body(self, prompt: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if params.get("image_url"):
            return {
                "prompt": prompt,
                "image_url": params["image_url"],
                "duration": params.get("duration", 6),
            }
        return {
            "prompt": prompt,
            "image_size": params.get("image_size", "landscape_16_9"),
            "num_inference_steps": params.get("num_inference_steps", 28),
            "guidance_scale": params.get("guidance_scale", 3.5),
            "num_images": 1,
            "negative_prompt": params.get("negative_prompt") or DEFAULT_NEGATIVE_PROMPT,
        }

    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        endpoint = f"{self.base_url.rstrip('/')}/{self.model}"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            submitted = (await self._request(client, "POST", endpoint, json=self._build_body(prompt, params))).json()
            request_id = submitted.get("request_id")
            if not request_id:
                return self._extract(submitted)

            status_url = submitted.get("status_url") or f"{endpoint}/requests/{request_id}/status"
            response_url = submitted.get("response_url") or f"{endpoint}/requests/{request_id}"
            for _ in range(self.poll_max_attempts):
                await asyncio.sleep(self.poll_interval)
                status = (await self._request(client, "GET", status_url)).json()
                state = str(status.get("status", "")).upper()
                if state in ("COMPLETED", "SUCCEEDED"):
                    result = (await self._request(client, "GET", response_url)).json()
                    return self._extract(result, request_id)
                if state in ("FAILED", "ERROR"):
                    raise ProviderError(
                        f"fal job failed: {status.get('error', 'unknown error')}",
                        provider=self.provider_name,
                        retryable=False,
                    )
        raise ProviderError("Timeout waiting for result", provider=self.provider_name)

    def _extract(self, result: Dict[str, Any], request_id: Optional[str] = None) -> Dict[str, Any]:
        url = None
        if result.get("images"):
            url = result["images"][0].get("url")
        elif isinstance(result.get("video"), dict):
            url = result["video"].get("url")
        elif isinstance(result.get("image"), dict):
            url = result["image"].get("url")
        if not url:
            raise ProviderError("fal returned no media url", provider=self.provider_name, retryable=False)
        return {"url": url, "metadata": {"request_id": request_id, "seed": result.get("seed")}}


class StabilityProvider(_HttpMediaProvider):
    """Stability AI text-to-image; base64 artifacts become a PNG data URI."""

    provider_name = "stability"
    default_base_url = "https://api.stability.ai"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Accept"] = "application/json"
        return headers

    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        url = f"{self.base_url.rstrip('/')}/v1/generation/{self.model}/text-to-image"
        body = {
            "text_prompts": [
                {"text": prompt, "weight": 1},
                {"text": params.get("negative_prompt") or DEFAULT_NEGATIVE_PROMPT, "weight": -1},
            ],
            "cfg_scale": params.get("cfg_scale", 7),
            "height": params.get("height", 1024),
            "width": params.get("width", 1024),
            "samples": 1,
            "steps": params.get("steps", 30),
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            data = (await self._request(client, "POST", url, json=body)).json()

        artifacts = data.get("artifacts") or []
        if not artifacts or not artifacts[0].get("base64"):
            raise ProviderError("stability returned no artifacts", provider=self.provider_name, retryable=False)
        return {
            "url": f"data:image/png;base64,{artifacts[0]['base64']}",
            "metadata": {"seed": artifacts[0].get("seed"), "finish_reason": artifacts[0].get("finishReason")},
        }


class ReplicateProvider(_HttpMediaProvider):
    """Replicate predictions API; the prediction is polled until it settles."""

    provider_name = "replicate"
    default_base_url = "https://api.replicate.com/v1"

    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        base = self.base_url.rstrip("/")
        body = {
            "version": self.model,
            "input": {
                "prompt": prompt,
                "width": params.get("width", 1024),
                "height": params.get("height", 576),
                "num_outputs": 1,
            },
        }
        if params.get("image_url"):
            body["input"]["image"] = params["image_url"]

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            prediction = (await self._request(client, "POST", f"{base}/predictions", json=body)).json()
            poll_url = (prediction.get("urls") or {}).get("get") or f"{base}/predictions/{prediction.get('id')}"
            for _ in range(self.poll_max_attempts):
                status = prediction.get("status")
                if status == "succeeded":
                    return self._extract(prediction)
                if status in ("failed", "canceled"):
                    raise ProviderError(
                        f"replicate prediction {status}: {prediction.get('error')}",
                        provider=self.provider_name,
                        retryable=False,
                    )
                await asyncio.sleep(self.poll_interval)
                prediction = (await self._request(client, "GET", poll_url)).json()
        raise ProviderError("Timeout waiting for result", provider=self.provider_name)

    def _extract(self, prediction: Dict[str, Any]) -> Dict[str, Any]:
        output = prediction.get("output")
        url = output[0] if isinstance(output, list) and output else output
        if not url:
            raise ProviderError("replicate returned no output", provider=self.provider_name, retryable=False)
        return {"url": url, "metadata": {"prediction_id": prediction.get("id")}}


class ModelsLabProvider(_HttpMediaProvider):
    """
    ModelsLab 图生视频 / ModelsLab image-to-video

    The vendor answers either with the finished video or with a job id that
    is fetched until it reports ``success``.
    """

    provider_name = "modelslab"
    default_base_url = "https://modelslab.com/api/v7"

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _base(self) -> str:
        return self.base_url.rstrip("/").replace("/v6", "/v7")

    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        body = {
            "key": self.api_key,
            "model_id": self.model,
            "prompt": prompt,
            "negative_prompt": params.get("negative_prompt") or DEFAULT_NEGATIVE_PROMPT,
            "init_image": params.get("image_url"),
            "duration": params.get("duration", 6),
            "fps": params.get("fps", 25),
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            data = (
                await self._request(client, "POST", f"{self._base()}/video-fusion/image-to-video", json=body)
            ).json()
            for _ in range(self.poll_max_attempts):
                status = data.get("status")
                if status == "success" and data.get("output"):
                    output = data["output"]
                    url = output[0] if isinstance(output, list) else output
                    return {"url": url, "metadata": {"job_id": data.get("id")}}
                if status in ("error", "failed"):
                    raise ProviderError(
                        f"modelslab job failed: {data.get('message') or data.get('messege')}",
                        provider=self.provider_name,
                        retryable=False,
                    )
                job_id = data.get("id")
                if not job_id:
                    raise ProviderError("modelslab returned no job id", provider=self.provider_name, retryable=False)
                await asyncio.sleep(self.poll_interval)
                data = (
                    await self._request(
                        client,
                        "POST",
                        f"{self._base()}/video-fusion/fetch",
                        json={"key": self.api_key, "request_id": job_id},
                    )
                ).json()
                data.setdefault("id", job_id)
        raise ProviderError("Timeout waiting for result", provider=self.provider_name)


class ElevenLabsProvider(_HttpMediaProvider):
    """ElevenLabs text-to-speech; the MP3 bytes become an audio data URI."""

    provider_name = "elevenlabs"
    default_base_url = "https://api.elevenlabs.io/v1"
    default_voice_id = "21m00Tcm4TlvDq8ikWAM"

    def _headers(self) -> Dict[str, str]:
        return {"xi-api-key": self.api_key, "Content-Type": "application/json", "Accept": "audio/mpeg"}

    async def generate(self, prompt: str, **params: Any) -> Dict[str, Any]:
        voice_id = params.get("voice_id") or self.default_voice_id
        body = {
            "text": prompt,
            "model_id": self.model,
            "voice_settings": {
                "stability": params.get("stability", 0.5),
                "similarity_boost": params.get("similarity_boost", 0.75),
            },
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await self._request(
                client, "POST", f"{self.base_url.rstrip('/')}/text-to-speech/{voice_id}", json=body
            )
        encoded = base64.b64encode(response.content).decode("ascii")
        return {
            "url": f"data:audio/mpeg;base64,{encoded}",
            "metadata": {"voice_id": voice_id, "bytes": len(response.content)},
        }
