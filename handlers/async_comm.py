"""Asynchronous JSON-over-HTTP client used by the HTTP translation engine.

`AsyncHttp` owns one aiohttp session for the lifetime of the engine. Responses are decoded
according to their Content-Type, and transport failures are mapped onto `AsyncCommError`
so that callers never see aiohttp exceptions.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = ["AsyncCommError", "AsyncCommInvalidContentTypeError", "AsyncCommTimeoutError", "AsyncHttp"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CONNECT_TIMEOUT: Final[float] = 1.0

_DECODERS: Final[dict[str, Callable[[bytes], Any]]] = {
    "application/json": lambda raw: json.loads(raw.decode("utf-8")),
    "text/plain": lambda raw: raw.decode("utf-8"),
    "text/html": lambda raw: raw.decode("utf-8"),
}


def build_timeout(total: float) -> aiohttp.ClientTimeout:
    """Translate a total timeout in seconds into an aiohttp timeout.

    A non-positive value disables the timeout. Totals shorter than `CONNECT_TIMEOUT` are applied as is;
    longer ones additionally cap the connection phase at `CONNECT_TIMEOUT`.
    """
    if total <= 0:
        return aiohttp.ClientTimeout(total=None)
    if total < CONNECT_TIMEOUT:
        return aiohttp.ClientTimeout(total=total)
    return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total)


class AsyncHttp:
    """Session-owning HTTP client for JSON APIs.

    Must be created inside a running event loop. Usable as an async context manager; leaving the
    context closes the session, and entering again opens a new one.
    """

    def __init__(self) -> None:
        self.__session: ClientSession | None = None
        self.decoders: dict[str, Callable[[bytes], Any]] = dict(_DECODERS)
        self.open_session()

    async def __aenter__(self) -> Self:
        self.open_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    def open_session(self) -> None:
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=True)
            logger.debug("%s session opened", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def closed(self) -> bool:
        return self.__session is None or self.__session.closed

    async def close(self) -> None:
        if self.__session is not None and not self.__session.closed:
            await self.__session.close()
            logger.debug("%s session closed", self.__class__.__name__)

    async def post_json(self, *, url: str, payload: dict[str, Any], timeout: float = 10.0) -> Any:
        """POST a JSON body and return the decoded response.

        Args:
            url (str): Endpoint URL.
            payload (dict[str, Any]): Request body, serialized as JSON.
            timeout (float): Total timeout in seconds. Non-positive disables it.

        Returns:
            Any: Decoded body, or None for an empty response.

        Raises:
            AsyncCommTimeoutError: If the server does not answer in time.
            AsyncCommInvalidContentTypeError: If the response type has no decoder.
            AsyncCommError: On connection failures and error statuses.
        """
        logger.debug("POST %s (timeout: %s)", url, timeout)
        try:
            async with self.session.post(url, json=payload, timeout=build_timeout(timeout)) as resp:
                return await self.decode(resp)
        except TimeoutError as err:
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not running, or the port is closed."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientResponseError as err:
            logger.debug(err)
            raise AsyncCommError("Error response from the server.", status=err.status) from err
        except (aiohttp.ClientError, ConnectionResetError) as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err

    async def decode(self, resp: ClientResponse) -> Any:
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        decoder: Callable[[bytes], Any] | None = self.decoders.get(content_type)
        if decoder is None:
            msg: str = f"Unknown Content-Type '{content_type}'"
            raise AsyncCommInvalidContentTypeError(msg)
        try:
            return decoder(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            msg = f"Undecodable '{content_type}' response: {err}"
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Failure while talking to a remote HTTP endpoint.

    Attributes:
        msg (str): Description, including the status when one was received.
        status (int | None): HTTP status of an error response.
    """

    def __init__(self, msg: str, *, status: int | None = None) -> None:
        self.status: int | None = status
        self.msg: str = f"{msg}: status='{status}'" if status is not None else msg
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """The endpoint did not respond within the timeout."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """The response carried a Content-Type without a registered decoder."""
