"""HTTP translation engine.

Talks to a LibreTranslate-compatible endpoint: a JSON POST of
`{"q": ..., "source": ..., "target": ..., "format": "text"}` answered with `{"translatedText": ...}`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from core.trans.interface import (
    EngineAttributes,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config

__all__: list[str] = ["HttpTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTP_BAD_REQUEST: Final[int] = 400
HTTP_FORBIDDEN: Final[int] = 403
HTTP_TOO_MANY_REQUESTS: Final[int] = 429


class HttpTranslation(TransInterface):
    def __init__(self) -> None:
        super().__init__()
        self.__http: AsyncHttp | None = None
        self._url: str = ""
        self._api_key: str = ""
        self._timeout: float = 10.0

    @property
    def _http(self) -> AsyncHttp:
        if self.__http is None:
            msg = "The HTTP client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__http

    @property
    def is_available(self) -> bool:
        return self.__http is not None

    @staticmethod
    def fetch_engine_name() -> str:
        return "http"

    def initialize(self, config: Config) -> None:
        """Set up the HTTP client. Must be called from a running event loop.

        Args:
            config (Config): Configuration with the HTTP_ENGINE section.

        Raises:
            RuntimeError: If the endpoint URL is missing.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(name="http", requires_api_key=False)
        self._url = config.HTTP_ENGINE.URL
        if not self._url:
            msg = "HTTP translation endpoint URL is not configured"
            raise RuntimeError(msg)
        self._api_key = config.HTTP_ENGINE.API_KEY or self.get_authentication_key()
        self._timeout = config.HTTP_ENGINE.TIMEOUT
        self.__http = AsyncHttp()

    def _build_payload(self, content: str, tgt_lang: str, src_lang: str | None) -> dict[str, str]:
        payload: dict[str, str] = {
            "q": content,
            "source": src_lang or "auto",
            "target": tgt_lang,
            "format": "text",
        }
        if self._api_key:
            payload["api_key"] = self._api_key
        return payload

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        logger.debug("'content': '%s', 'src_lang': '%s', 'tgt_lang': '%s'", content, src_lang, tgt_lang)
        try:
            response: Any = await self._http.post_json(
                url=self._url,
                payload=self._build_payload(content, tgt_lang, src_lang),
                timeout=self._timeout,
            )
        except AsyncCommTimeoutError as err:
            msg = "The translation server did not respond in time"
            raise TranslateExceptionError(msg) from err
        except AsyncCommError as err:
            if err.status == HTTP_TOO_MANY_REQUESTS:
                raise TranslationRateLimitError(err.msg) from err
            if err.status == HTTP_FORBIDDEN:
                raise TranslationQuotaExceededError(err.msg) from err
            if err.status == HTTP_BAD_REQUEST:
                msg: str = f"Request rejected by the server. Source language: '{src_lang}'. Target language: '{tgt_lang}'."
                raise NotSupportedLanguagesError(msg) from err
            raise TranslateExceptionError(err.msg) from err

        if not isinstance(response, dict) or not isinstance(response.get("translatedText"), str):
            msg = f"Malformed response from the translation server: {response!r}"
            raise TranslateExceptionError(msg)

        detected: Any = response.get("detectedLanguage")
        detected_lang: str | None = src_lang
        if isinstance(detected, dict) and isinstance(detected.get("language"), str):
            detected_lang = detected["language"]

        logger.info("translation completed (%s > %s)", src_lang, tgt_lang)
        return Result(
            text=response["translatedText"],
            detected_source_lang=detected_lang,
            metadata={"engine": "http"},
        )

    async def close(self) -> None:
        if self.__http is not None:
            await self.__http.close()
            self.__http = None
        logger.info("'%s' process termination", self.__class__.__name__)
