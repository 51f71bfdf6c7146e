from __future__ import annotations

import time
from typing import TYPE_CHECKING

from core.trans.engines import (
    DeeplTranslation,  # noqa: F401
    HttpTranslation,  # noqa: F401
)
from core.trans.interface import (
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ADAPTIVE_LIMITER_ENABLED: bool = True
ADAPTIVE_LIMITER_BASE_COOLDOWN_SEC: float = 1.0
ADAPTIVE_LIMITER_MAX_COOLDOWN_SEC: float = 30.0
ADAPTIVE_LIMITER_RESET_SEC: float = 60.0
ADAPTIVE_LIMITER_LOG_INTERVAL_SEC: float = 5.0


class TransManager:
    """Manager for handling translation engines.

    Initializes the configured engines in order and routes every live translation to the first
    engine that is still available. This is the live translation call used by the orchestrator:
    `translate()` either returns non-empty text or raises `TranslateExceptionError`.
    """

    def __init__(self, config: Config) -> None:
        """Initialize the TransManager with the given configuration.

        Args:
            config (Config): The configuration object containing translation engine settings.
        """
        self.config: Config = config
        self._trans_instance: dict[str, TransInterface] = {}
        self._engine_names: list[str] = []
        self._rate_limit_error_count: int = 0
        self._rate_limit_last_error: float = 0.0
        self._rate_limit_until: float = 0.0
        self._rate_limit_last_log: float = 0.0
        logger.debug("Registered translation engines: %s", TransInterface.registered)

    async def initialize(self) -> None:
        """Initialize translation engines based on the configuration."""
        logger.info("TransManager initialization started")

        self._engine_names.clear()
        for _name in self.config.TRANSLATION.ENGINE:
            _cls: type[TransInterface] | None = TransInterface.registered.get(_name)
            if _cls is None:
                logger.critical("Translation class not found: '%s'", _name)
                continue
            _instance: TransInterface = _cls()
            try:
                _instance.initialize(self.config)
                self._trans_instance[_name] = _instance
                logger.info("Translation engine initialized: '%s'", _name)
                logger.debug("Engine attributes: %s", _instance.engine_attributes)
                print(f"Loaded translation engine: {_name}")
                self._engine_names.append(_name)
            except RuntimeError as err:
                logger.critical("RuntimeError in '%s' translation setup: %s", _name, err)
            except TranslateExceptionError as err:
                logger.critical("Exception in '%s' translation setup: %s", _name, err)

    def fetch_engine_names(self) -> list[str]:
        """Get the names of the engines still in rotation, in priority order."""
        return self._engine_names

    @property
    def current_engine_instance(self) -> TransInterface:
        """Get the currently active translation engine.

        Raises:
            TranslateExceptionError: If no translation engines are available or if the current engine is invalid.
        """
        try:
            return self._trans_instance[self._engine_names[0]]
        except IndexError as err:
            logger.debug("No available translation engines. Error: %s", err)
            error_message = "No translation engines currently available"
            raise TranslateExceptionError(error_message) from err
        except KeyError as err:
            logger.debug("Invalid translation engine key: %s", err)
            error_message: str = f"Invalid translation engine key: {err}"
            raise TranslateExceptionError(error_message) from err

    def refresh_active_engine_list(self) -> None:
        """Drop the current engine from the rotation if it reports itself unavailable."""
        if not self._engine_names:
            logger.debug("No translation engines configured.")
            return
        if self.current_engine_instance.is_available:
            return

        remove_engine_name: str = self._engine_names.pop(0)
        logger.error("Translation engine disabled: '%s'", remove_engine_name)

    def _rate_limit_blocked(self) -> bool:
        if not ADAPTIVE_LIMITER_ENABLED:
            return False

        now: float = time.monotonic()
        if now < self._rate_limit_until:
            if now - self._rate_limit_last_log >= ADAPTIVE_LIMITER_LOG_INTERVAL_SEC:
                remaining: float = self._rate_limit_until - now
                logger.warning("Translation temporarily throttled (%.1f sec remaining).", remaining)
                self._rate_limit_last_log = now
            return True
        return False

    def _register_rate_limit(self) -> None:
        """Register a rate-limit event and extend the cooldown with exponential backoff."""
        if not ADAPTIVE_LIMITER_ENABLED:
            return

        now: float = time.monotonic()
        if now - self._rate_limit_last_error > ADAPTIVE_LIMITER_RESET_SEC:
            self._rate_limit_error_count = 0

        self._rate_limit_error_count += 1
        self._rate_limit_last_error = now

        backoff: float = ADAPTIVE_LIMITER_BASE_COOLDOWN_SEC * (2 ** (self._rate_limit_error_count - 1))
        backoff = min(backoff, ADAPTIVE_LIMITER_MAX_COOLDOWN_SEC)

        self._rate_limit_until = max(self._rate_limit_until, now + backoff)

    def _handle_translation_failure(self, engine: TransInterface, err: TranslateExceptionError) -> None:
        if engine.is_rate_limit_error(err):
            self._register_rate_limit()
            logger.warning("Translation rate limit detected: %s", err)
        elif isinstance(err, TranslationQuotaExceededError):
            logger.error("Translation quota exceeded: %s", err)
            self.refresh_active_engine_list()
        elif isinstance(err, NotSupportedLanguagesError):
            logger.error("Unsupported language pair: %s", err)
        else:
            logger.error("Translation failed: %s", err)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text with the active engine.

        Args:
            text (str): Text to translate.
            source_lang (str): Source language code.
            target_lang (str): Target language code.

        Returns:
            str: The translated text, never empty.

        Raises:
            TranslateExceptionError: On any failure, including an empty engine result.
        """
        if self._rate_limit_blocked():
            msg = "Translation temporarily throttled"
            raise TranslationRateLimitError(msg)

        engine: TransInterface = self.current_engine_instance
        logger.debug("Using translation engine '%s'. Source: '%s', Target: '%s'", engine.engine_name, source_lang, target_lang)
        try:
            result: Result = await engine.translation(content=text, tgt_lang=target_lang, src_lang=source_lang)
        except TranslateExceptionError as err:
            self._handle_translation_failure(engine, err)
            raise
        except Exception as err:
            logger.exception("Translation failed with unexpected error.")
            msg: str = f"Unexpected translation failure: {err}"
            raise TranslateExceptionError(msg) from err

        translated: str = StringUtils.ensure_str(result.text)
        if not translated:
            msg = "The translation engine returned an empty result"
            raise TranslateExceptionError(msg)
        logger.debug("Final translation result (src: '%s', tgt: '%s'): %s", source_lang, target_lang, translated[:50])
        return translated

    async def shutdown_engines(self) -> None:
        for _name, _inst in self._trans_instance.items():
            try:
                await _inst.close()
            except Exception as err:  # noqa: BLE001
                logger.error("Error closing translation engine '%s': %s", _name, err)
        self._trans_instance.clear()
        self._engine_names.clear()
