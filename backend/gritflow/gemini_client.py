from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, Optional
from .settings import settings

logger = logging.getLogger(__name__)

AI_STUDIO_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
VERTEX_URL = (
	"https://{region}-aiplatform.googleapis.com/v1/projects/{project}"
	"/locations/{region}/publishers/google/models/{model}:generateContent"
)


class GeminiError(RuntimeError):
	pass


class GeminiClient:
	"""Minimal async client for Gemini ``generateContent``.

	AI Studio takes the key as a ``key`` query parameter, Vertex AI as the
	``x-goog-api-key`` header.
	"""

	def __init__(self, api_key: Optional[str] = None, *, base_url: Optional[str] = None, model: Optional[str] = None) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		self._auth_in_query = self.provider != "vertex"
		if base_url:
			self.base_url = base_url
		elif self.provider == "vertex":
			if not settings.vertex_project:
				raise ValueError("GEMINI_VERTEX_PROJECT is required for the vertex provider")
			self.base_url = VERTEX_URL.format(region=settings.vertex_region, project=settings.vertex_project, model=self.model)
		else:
			self.base_url = AI_STUDIO_URL.format(model=self.model)
		self._client = httpx.AsyncClient(timeout=settings.gemini_timeout_seconds)

	async def __aenter__(self) -> "GeminiClient":
		return self

	async def __aexit__(self, *exc_info) -> None:
		await self.aclose()

	async def generate(
		self,
		prompt: str,
		*,
		temperature: Optional[float] = None,
		max_output_tokens: Optional[int] = None,
	) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		generation_config: Dict[str, Any] = {}
		if temperature is not None:
			generation_config["temperature"] = temperature
		if max_output_tokens is not None:
			generation_config["maxOutputTokens"] = max_output_tokens
		if generation_config:
			payload["generationConfig"] = generation_config
		return await self._post_payload(payload)

	async def _post_payload(self, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			status = http_err.response.status_code
			if status == 429:
				raise GeminiError("Gemini rate limit exceeded") from http_err
			raise GeminiError(f"Gemini returned HTTP {status}") from http_err
		except httpx.RequestError as net_err:
			raise GeminiError(f"Gemini request failed: {net_err}") from net_err
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			logger.debug("Unexpected Gemini payload: %s", r.text)
			raise GeminiError("Unexpected Gemini response") from err

	async def aclose(self) -> None:
		await self._client.aclose()
