"""Unit tests for core.trans.manager module."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, ClassVar, cast

import pytest

from core.trans import manager as manager_module
from core.trans.interface import (
    EngineAttributes,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
)
from core.trans.manager import TransManager

if TYPE_CHECKING:
    from models.config_models import Config


class DummyEngine(TransInterface):
    """Minimal translation engine for TransManager tests."""

    translation_result: ClassVar[Result] = Result(text="translated")
    translation_error: ClassVar[Exception | None] = None
    initialize_error: ClassVar[Exception | None] = None
    available: ClassVar[bool] = True
    calls: ClassVar[list[tuple[str, str, str | None]]] = []
    close_called: ClassVar[bool] = False

    @property
    def is_available(self) -> bool:
        return type(self).available

    @staticmethod
    def fetch_engine_name() -> str:
        return ""

    def initialize(self, config: Config) -> None:
        _ = config
        err: Exception | None = type(self).initialize_error
        if err is not None:
            raise err
        self.engine_attributes = EngineAttributes(name="dummy")

    async def translation(self, content: str, tgt_lang: str, src_lang: str | None = None) -> Result:
        type(self).calls.append((content, tgt_lang, src_lang))
        err: Exception | None = type(self).translation_error
        if err is not None:
            raise err
        return type(self).translation_result

    async def close(self) -> None:
        type(self).close_called = True


class SecondEngine(DummyEngine):
    """Fallback engine sharing DummyEngine's behaviour switches."""


@pytest.fixture(autouse=True)
def reset_engine_state(monkeypatch: pytest.MonkeyPatch) -> None:
    DummyEngine.translation_result = Result(text="translated")
    DummyEngine.translation_error = None
    DummyEngine.initialize_error = None
    DummyEngine.available = True
    DummyEngine.calls = []
    DummyEngine.close_called = False

    monkeypatch.setattr(TransInterface, "registered", {"dummy": DummyEngine, "second": SecondEngine})


@pytest.fixture
def config() -> Config:
    return cast("Config", SimpleNamespace(TRANSLATION=SimpleNamespace(ENGINE=["dummy"])))


@pytest.mark.asyncio
async def test_init_registers_engine(config: Config, capsys: pytest.CaptureFixture[str]) -> None:
    manager = TransManager(config)
    await manager.initialize()

    assert manager.fetch_engine_names() == ["dummy"]
    assert isinstance(manager.current_engine_instance, DummyEngine)
    assert "Loaded translation engine: dummy" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_initialize_skips_unknown_and_failing_engines() -> None:
    config = cast("Config", SimpleNamespace(TRANSLATION=SimpleNamespace(ENGINE=["unknown", "dummy"])))
    DummyEngine.initialize_error = TranslateExceptionError("bad key")

    manager = TransManager(config)
    await manager.initialize()

    assert manager.fetch_engine_names() == []


@pytest.mark.asyncio
async def test_active_engine_raises_when_empty() -> None:
    config = cast("Config", SimpleNamespace(TRANSLATION=SimpleNamespace(ENGINE=[])))
    manager = TransManager(config)
    await manager.initialize()

    with pytest.raises(TranslateExceptionError):
        _ = manager.current_engine_instance


@pytest.mark.asyncio
async def test_translate_returns_engine_text(config: Config) -> None:
    DummyEngine.translation_result = Result(text="hola")
    manager = TransManager(config)
    await manager.initialize()

    result: str = await manager.translate("hello", "en", "es")

    assert result == "hola"
    assert DummyEngine.calls == [("hello", "es", "en")]


@pytest.mark.asyncio
async def test_translate_raises_on_empty_result(config: Config) -> None:
    DummyEngine.translation_result = Result(text=None)
    manager = TransManager(config)
    await manager.initialize()

    with pytest.raises(TranslateExceptionError):
        await manager.translate("hello", "en", "es")


@pytest.mark.asyncio
async def test_translate_wraps_unexpected_errors(config: Config) -> None:
    DummyEngine.translation_error = KeyError("boom")
    manager = TransManager(config)
    await manager.initialize()

    with pytest.raises(TranslateExceptionError) as exc_info:
        await manager.translate("hello", "en", "es")

    assert isinstance(exc_info.value.__cause__, KeyError)


@pytest.mark.asyncio
async def test_translate_propagates_unsupported_language(config: Config) -> None:
    DummyEngine.translation_error = NotSupportedLanguagesError("bad pair")
    manager = TransManager(config)
    await manager.initialize()

    with pytest.raises(NotSupportedLanguagesError):
        await manager.translate("hello", "xx", "yy")

    assert manager.fetch_engine_names() == ["dummy"]


@pytest.mark.asyncio
async def test_rate_limit_blocks_following_requests(config: Config) -> None:
    DummyEngine.translation_error = TranslationRateLimitError("slow down")
    manager = TransManager(config)
    await manager.initialize()

    with pytest.raises(TranslationRateLimitError):
        await manager.translate("hello", "en", "es")
    assert manager._rate_limit_until > 0  # noqa: SLF001

    DummyEngine.translation_error = None
    with pytest.raises(TranslationRateLimitError):
        await manager.translate("hello", "en", "es")
    assert len(DummyEngine.calls) == 1


@pytest.mark.asyncio
async def test_rate_limiter_can_be_disabled(config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(manager_module, "ADAPTIVE_LIMITER_ENABLED", False)
    DummyEngine.translation_error = TranslationRateLimitError("slow down")
    manager = TransManager(config)
    await manager.initialize()

    with pytest.raises(TranslationRateLimitError):
        await manager.translate("hello", "en", "es")

    DummyEngine.translation_error = None
    assert await manager.translate("hello", "en", "es") == "translated"


@pytest.mark.asyncio
async def test_quota_exceeded_falls_back_to_next_engine() -> None:
    config = cast("Config", SimpleNamespace(TRANSLATION=SimpleNamespace(ENGINE=["dummy", "second"])))
    manager = TransManager(config)
    await manager.initialize()
    DummyEngine.translation_error = TranslationQuotaExceededError("quota")
    DummyEngine.available = False

    with pytest.raises(TranslationQuotaExceededError):
        await manager.translate("hello", "en", "es")

    assert manager.fetch_engine_names() == ["second"]


@pytest.mark.asyncio
async def test_refresh_active_engine_list_removes_unavailable(config: Config) -> None:
    manager = TransManager(config)
    await manager.initialize()
    DummyEngine.available = False

    manager.refresh_active_engine_list()

    assert manager.fetch_engine_names() == []


@pytest.mark.asyncio
async def test_shutdown_engines_closes_instances(config: Config) -> None:
    manager = TransManager(config)
    await manager.initialize()

    await manager.shutdown_engines()

    assert DummyEngine.close_called is True
    assert manager.fetch_engine_names() == []
