from __future__ import annotations

import logging

import requests

from transcribe_tray.errors import ApiError

LOGGER = logging.getLogger(__name__)


class TranscribeClient:
    def __init__(
        self,
        base_url: str,
        language: str = "en",
        model: str = "whisper-large-v3",
        timeout_seconds: float = 30.0,
        api_key: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.model = model
        self.timeout = max(timeout_seconds, 1.0)
        self.api_key = api_key
        self.session = session or requests.Session()

    def fetch_transcription(self, audio: bytes) -> str:
        LOGGER.info("Transcription request started (bytes=%d)", len(audio))
        response = self._post(
            "/transcribe",
            data=audio,
            params={"lang": self.language, "model": self.model},
            content_type="audio/wav",
        )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(f"Malformed transcription response: {exc}") from exc

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise ApiError("Transcription response is missing 'text'")
        LOGGER.info("Transcription received (chars=%d)", len(text))
        return text.strip()

    def clean_transcription(self, text: str) -> str:
        LOGGER.info("Polish request started (chars=%d)", len(text))
        response = self._post(
            "/polish",
            data=text.encode("utf-8"),
            content_type="text/plain; charset=utf-8",
        )
        cleansed = response.content.decode("utf-8", errors="replace").strip()
        if not cleansed:
            raise ApiError("Polish response is empty")
        LOGGER.info("Polish applied (chars=%d -> %d)", len(text), len(cleansed))
        return cleansed

    def _post(
        self,
        path: str,
        data: bytes,
        content_type: str,
        params: dict[str, str] | None = None,
    ) -> requests.Response:
        headers = {"Content-Type": content_type}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = self.session.post(
                f"{self.base_url}{path}",
                data=data,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as exc:
            LOGGER.warning("Request to %s timed out after %.1fs", path, self.timeout)
            raise ApiError(f"{path} timed out") from exc
        except requests.RequestException as exc:
            LOGGER.warning("Request to %s failed: %s", path, exc)
            raise ApiError(f"{path} failed: {exc}") from exc
        return response
