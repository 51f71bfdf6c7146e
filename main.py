"""LingoFlow console front end.

Reads text from stdin and prints translations as they settle. Lines starting with ':' are commands;
type ':help' for the list. Everything else replaces the source text, exactly like typing into the
input box of a graphical front end.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import ConfigLoader, ConfigLoaderError
from core.cache.storage import StorageError
from core.shared_data import SharedData
from core.version import VERSION
from models.language_models import get_language_by_label, get_language_by_value, language_label
from models.translation_models import NotificationLevel, OrchestratorState
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config
    from models.history_models import HistoryEntry
    from models.translation_models import Notification, OrchestratorSnapshot

CFG_FILE: Final[str] = "lingoflow.ini"

HELP_TEXT: Final[str] = """\
Commands:
  :source LANG        set the source language (code or name)
  :target LANG        set the target language (code or name)
  :swap               swap languages, using the result as the new source text
  :clear              clear text and result
  :now                translate immediately
  :offline-mode on|off  toggle offline mode (cached translations)
  :network on|off     simulate network availability
  :history            list translation history
  :fav ID             toggle the favorite flag of a history entry
  :clear-history      remove all history entries
  :cache              show cache statistics
  :speak              speak the current result
  :record             start or stop voice input
  :quit               exit"""

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def check_python_version() -> None:
    """Check if Python version is 3.12 or later.

    Raises:
        RuntimeError: If Python version is below 3.12.
    """
    if sys.version_info < (3, 12):
        msg = "Python 3.12 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def _on_off(value: str) -> bool:
    lowered: str = value.strip().lower()
    if lowered in ("on", "true", "yes", "1"):
        return True
    if lowered in ("off", "false", "no", "0"):
        return False
    msg = f"expected 'on' or 'off', got '{value}'"
    raise argparse.ArgumentTypeError(msg)


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        description="LingoFlow console translator",
        epilog="Example: python main.py --source en --target es --offline-mode on",
    )
    parser.add_argument("--config", dest="config", metavar="FILE", default=CFG_FILE, help="Configuration file")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--offline-mode", dest="offline_mode", metavar="on|off", type=_on_off, help="Override offline mode"
    )
    parser.add_argument("--source", dest="source", metavar="LANG", help="Override source language code")
    parser.add_argument("--target", dest="target", metavar="LANG", help="Override target language code")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser.parse_args()


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration file and apply CLI overrides.

    Args:
        args: Command-line arguments.

    Returns:
        Config: Configuration object.

    Raises:
        ConfigLoaderError: If configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    overrides = {key: value for key, value in vars(args).items() if key != "config"}
    config: Config = ConfigLoader(config_filename=args.config, script_name=script_name, **overrides).config
    config.GENERAL.VERSION = VERSION
    return config


def setup_logging(config: Config) -> None:
    logger_utils = LoggerUtils(config.GENERAL.LOG_FILE)
    logger_utils.set_level("DEBUG" if config.GENERAL.DEBUG else "INFO")
    logger.info("%s %s started", config.GENERAL.SCRIPT_NAME, VERSION)


def _resolve_language(value: str) -> str | None:
    lang = get_language_by_value(value.strip()) or get_language_by_label(value.strip())
    return lang.value if lang is not None else None


class ConsoleApp:
    """Bridges stdin and stdout to the translation orchestrator."""

    def __init__(self, shared_data: SharedData) -> None:
        self.shared_data: SharedData = shared_data
        self.orchestrator = shared_data.orchestrator
        self.orchestrator.add_state_listener(self.print_snapshot)
        self.orchestrator.add_notification_listener(self.print_notification)

    @staticmethod
    def print_snapshot(snapshot: OrchestratorSnapshot) -> None:
        if snapshot.state == OrchestratorState.SETTLED and snapshot.outcome is not None:
            outcome = snapshot.outcome
            if outcome.text:
                print(f"[{snapshot.source_lang} -> {snapshot.target_lang}] ({outcome.source}) {outcome.text}")
            elif outcome.note:
                print(f"[{snapshot.source_lang} -> {snapshot.target_lang}] {outcome.note}")

    @staticmethod
    def print_notification(notification: Notification) -> None:
        stream = sys.stderr if notification.level == NotificationLevel.ERROR else sys.stdout
        print(f"* {notification.title}: {notification.description}", file=stream)

    def print_status(self) -> None:
        print(
            f"{language_label(self.orchestrator.source_lang)} -> {language_label(self.orchestrator.target_lang)}"
            f" | network: {self.shared_data.connectivity.state}"
            f" | offline mode: {'on' if self.shared_data.offline_mode.enabled else 'off'}"
        )

    async def print_history(self) -> None:
        entries: list[HistoryEntry] = await self.shared_data.history_manager.fetch_history()
        if not entries:
            print("History is empty.")
            return
        for entry in entries:
            star: str = "*" if entry.is_favorite else " "
            print(
                f"{star} {entry.id[:8]}  {entry.source_language} -> {entry.target_language}: "
                f"{entry.source_text} => {entry.target_text}"
            )

    async def toggle_favorite(self, prefix: str) -> None:
        entries: list[HistoryEntry] = await self.shared_data.history_manager.fetch_history()
        matches: list[HistoryEntry] = [entry for entry in entries if prefix and entry.id.startswith(prefix)]
        if len(matches) != 1:
            print(f"No unique history entry matches '{prefix}'.")
            return
        if await self.shared_data.history_manager.toggle_favorite(matches[0].id):
            print("Favorite toggled.")

    async def print_cache_statistics(self) -> None:
        stats = await self.shared_data.cache_manager.get_cache_statistics()
        print(
            f"Cache entries: {stats.total_entries} "
            f"(expired: {stats.expired_entries}, corrupted: {stats.corrupted_entries})"
        )

    async def handle_command(self, line: str) -> bool:
        """Run one ':' command.

        Returns:
            bool: False when the application should exit.
        """
        command, _, argument = line[1:].partition(" ")
        command = command.strip().lower()
        argument = argument.strip()

        match command:
            case "quit" | "exit" | "q":
                return False
            case "help" | "?":
                print(HELP_TEXT)
            case "source" | "target":
                code: str | None = _resolve_language(argument)
                if code is None:
                    print(f"Unsupported language: '{argument}'")
                elif command == "source":
                    self.orchestrator.set_source_lang(code)
                else:
                    self.orchestrator.set_target_lang(code)
                self.print_status()
            case "swap":
                if not self.orchestrator.swap_languages():
                    print("Languages cannot be swapped right now.")
                self.print_status()
            case "clear":
                self.orchestrator.clear()
            case "now":
                self.orchestrator.translate_now()
            case "offline-mode":
                self.shared_data.offline_mode.set_enabled(_on_off(argument))
                self.print_status()
            case "network":
                self.shared_data.connectivity.update(_on_off(argument))
                self.print_status()
            case "history":
                await self.print_history()
            case "fav":
                await self.toggle_favorite(argument)
            case "clear-history":
                await self.shared_data.history_manager.clear_history()
                print("History cleared.")
            case "cache":
                await self.print_cache_statistics()
            case "speak":
                await self.orchestrator.speak_result()
            case "record":
                self.orchestrator.toggle_recording()
            case _:
                print(f"Unknown command: ':{command}'. Type ':help' for the list.")
        return True

    async def run(self) -> None:
        self.print_status()
        print("Type text to translate, ':help' for commands.")
        while True:
            try:
                line: str = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if line.startswith(":"):
                try:
                    if not await self.handle_command(line):
                        break
                except argparse.ArgumentTypeError as err:
                    print(f"Invalid argument: {err}")
                continue
            self.orchestrator.set_text(line)
            await self.orchestrator.wait_until_settled()


async def main() -> None:
    """Main entry point.

    Performs the following steps:
    1. Check Python version
    2. Parse command-line arguments and load configuration
    3. Configure logging
    4. Build shared services
    5. Run the console loop until ':quit' or end of input
    """
    check_python_version()
    args: argparse.Namespace = parse_arguments()
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return

    setup_logging(config)
    print("=" * 50)
    print(f"LingoFlow {VERSION}")
    print("=" * 50)

    shared_data = SharedData(config)
    try:
        await shared_data.async_init()
    except StorageError as err:
        print(f"\nError: {err}", file=sys.stderr)
        return
    if args.offline_mode is not None:
        shared_data.offline_mode.set_enabled(args.offline_mode)

    try:
        await ConsoleApp(shared_data).run()
    finally:
        await shared_data.close()


def cli() -> None:
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, EOFError):
        print("\n\nInterrupted by user.", file=sys.stderr)
    except (OSError, RuntimeError, ValueError) as err:
        print(f"\nFatal error: {err}", file=sys.stderr)


if __name__ == "__main__":
    cli()
