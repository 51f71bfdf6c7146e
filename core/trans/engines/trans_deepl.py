from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from deepl import DeepLClient, Language, TextResult
from deepl.exceptions import (
    AuthorizationException,
    ConnectionException,
    DeepLException,
    QuotaExceededException,
    TooManyRequestsException,
)

from core.trans.interface import (
    EngineAttributes,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config


__all__: list[str] = ["DeeplTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class DeeplTranslation(TransInterface):
    _source_codes: ClassVar[dict[str, str]] = {}  # Source language codes in DeepL's format
    _target_codes: ClassVar[dict[str, str]] = {}  # Target language codes in DeepL's format

    def __init__(self) -> None:
        super().__init__()
        self.__inst: DeepLClient | None = None
        self.__available: bool = False
        self._generate_langcode_mappings()

    def _generate_langcode_mappings(self) -> None:
        """Generate language code mappings for DeepL source and target codes.

        Maps the base code of each DeepL language constant to DeepL's uppercase format.
        Regional Chinese and Portuguese tags used by the language catalog map onto DeepL's own variants.
        """
        language_constants: dict[str, str] = {
            name: value for name, value in vars(Language).items() if isinstance(value, str) and name.isupper()
        }

        for code in language_constants.values():
            base_code: str = code.split("-")[0].lower()
            DeeplTranslation._source_codes[base_code] = base_code.upper()
            DeeplTranslation._target_codes.setdefault(base_code, code.upper())

        # DeepL rejects bare 'EN' and 'PT' as targets.
        DeeplTranslation._target_codes["en"] = "EN-US"
        DeeplTranslation._target_codes["pt"] = "PT-PT"
        for zh_variant in ("zh-CN", "zh-TW"):
            DeeplTranslation._source_codes[zh_variant] = "ZH"
            DeeplTranslation._target_codes[zh_variant] = "ZH"

        logger.debug("Language code mapping generated for DeepL.")

    @property
    def _inst(self) -> DeepLClient:
        if self.__inst is None:
            msg = "The DeepL instance is not initialised"
            raise TranslateExceptionError(msg)
        return self.__inst

    @property
    def is_available(self) -> bool:
        return self.__available

    @staticmethod
    def fetch_engine_name() -> str:
        return "deepl"

    def initialize(self, config: Config) -> None:
        """Create the DeepL client from the `DEEPL_API_OAUTH` environment variable.

        Args:
            config (Config): Unused. DeepL takes its key from the environment.

        Raises:
            RuntimeError: If the client cannot be created.
            TranslateExceptionError: If the authentication key is rejected.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        _ = config

        self.engine_attributes = EngineAttributes(name="deepl", requires_api_key=True)
        try:
            # Authentication happens on the first API call, so the key is verified through get_usage().
            self.__inst = DeepLClient(self.get_authentication_key())
            usage = self.__inst.get_usage()
            self.__available = not usage.character.limit_reached
        except (AttributeError, ValueError) as err:
            logger.critical(err)
            msg = "An error occurred while creating the DeepL client instance"
            raise RuntimeError(msg) from err
        except AuthorizationException:
            self.__inst = None
            msg = "Authorisation failed. Please check your authentication key"
            raise TranslateExceptionError(msg) from None
        except DeepLException as err:
            self.__inst = None
            msg = f"DeepL is unreachable: {err}"
            raise TranslateExceptionError(msg) from None

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        """Translate text with DeepL.

        Args:
            content (str): The text content to be translated.
            tgt_lang (str): The target language code for the translation.
            src_lang (str | None): The source language code. If None, DeepL detects it.

        Returns:
            Result: A Result object containing the translated text and detected source language.

        Raises:
            NotSupportedLanguagesError: If the specified languages are not supported by DeepL.
            TranslationQuotaExceededError: If the translation quota has been exceeded.
            TranslationRateLimitError: If DeepL throttles the request.
            TranslateExceptionError: If an error occurs during the translation process.
        """
        logger.debug("'content': '%s', 'src_lang': '%s', 'tgt_lang': '%s'", content, src_lang, tgt_lang)
        try:
            _src_lang: str | None = DeeplTranslation._source_codes[src_lang] if src_lang else None
            _tgt_lang: str = DeeplTranslation._target_codes[tgt_lang]
        except KeyError:
            msg: str = (
                f"Languages not supported by DeepL. Source language: '{src_lang}'. Target language: '{tgt_lang}'."
            )
            raise NotSupportedLanguagesError(msg) from None

        try:
            results: TextResult | list[TextResult] = await asyncio.to_thread(
                self._inst.translate_text,
                content,
                source_lang=_src_lang,
                target_lang=_tgt_lang,
            )
            logger.info("translation completed (%s > %s)", _src_lang, _tgt_lang)
            return self._build_result(results)

        except QuotaExceededException as err:
            self.__available = False
            raise TranslationQuotaExceededError(err) from None
        except AuthorizationException:
            msg = "Authorisation failed. Please check your authentication key"
            raise TranslateExceptionError(msg) from None
        except TooManyRequestsException as err:
            msg = "DeepL rate limit reached"
            raise TranslationRateLimitError(msg) from err
        except ConnectionException:
            msg = "An error occurred when connecting to the DeepL server"
            raise TranslateExceptionError(msg) from None
        except (DeepLException, ValueError, TypeError):
            msg = "An anomaly occurred during the translation process at DeepL"
            raise TranslateExceptionError(msg) from None

    def _build_result(self, results: TextResult | list[TextResult]) -> Result:
        if isinstance(results, list):
            if not results:
                msg = "DeepL returned no translation"
                raise TranslateExceptionError(msg)
            results = results[0]
        if not isinstance(results, TextResult):
            msg = "An anomaly occurred during the translation process at DeepL"
            raise TranslateExceptionError(msg)

        return Result(
            text=results.text,
            detected_source_lang=results.detected_source_lang.lower(),
            metadata={"engine": "deepl"},
        )

    async def close(self) -> None:
        self.__available = False
        self.__inst = None
        logger.debug("'%s' process termination", self.__class__.__name__)
