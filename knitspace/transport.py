"""Streaming POST to the generation backend over QtNetwork."""

from __future__ import annotations

import codecs
import json
import logging
from typing import Optional

from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from .cancellation import CancellationToken
from .config import KnitspaceSettings
from .constants import DEFAULT_PROMPT
from .errors import TransportError

logger = logging.getLogger(__name__)


def build_request_body(image_data_url: str, prompt: str = DEFAULT_PROMPT) -> bytes:
    """JSON body for one generation request."""
    payload = {"prompt": prompt, "context": {"imageDataUrl": image_data_url}}
    return json.dumps(payload).encode("utf-8")


def _http_status(reply) -> Optional[int]:
    status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
    if status is None:
        return None
    try:
        return int(status)
    except (TypeError, ValueError):
        return None


class GenerationStream(QObject):
    """Text view of one in-flight response body.

    Bytes are decoded incrementally as UTF-8, so a character split across
    two network reads comes out whole. Cancelling the token aborts the
    reply; a cancelled stream emits nothing further.
    """

    chunkReceived = Signal(str)
    finished = Signal()
    failed = Signal(str)

    def __init__(self, reply, token: CancellationToken, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._reply = reply
        self._token = token
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._done = False
        reply.readyRead.connect(self._on_ready_read)
        reply.finished.connect(self._on_finished)
        token.add_callback(self._abort_reply)

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def is_done(self) -> bool:
        return self._done

    def abort(self) -> None:
        self._token.cancel()

    def _abort_reply(self) -> None:
        if not self._done:
            logger.debug("Aborting generation reply for %s", self._token.owner)
            self._reply.abort()

    def _status_ok(self) -> bool:
        status = _http_status(self._reply)
        return status is None or 200 <= status < 300

    def _on_ready_read(self) -> None:
        if self._done or self._token.cancelled:
            return
        data = bytes(self._reply.readAll())
        if not data or not self._status_ok():
            return
        text = self._decoder.decode(data)
        if text:
            self.chunkReceived.emit(text)

    def _raise_for_reply(self) -> None:
        status = _http_status(self._reply)
        if status is not None and not 200 <= status < 300:
            raise TransportError(f"HTTP error {status}")
        if self._reply.error() != QNetworkReply.NetworkError.NoError:
            raise TransportError(self._reply.errorString() or "Network error")

    def _on_finished(self) -> None:
        if self._done:
            return
        self._done = True
        try:
            if self._token.cancelled:
                logger.debug("Generation stream for %s cancelled", self._token.owner)
                return
            self._raise_for_reply()
            text = self._decoder.decode(bytes(self._reply.readAll()), final=True)
            if text:
                self.chunkReceived.emit(text)
            self.finished.emit()
        except TransportError as exc:
            logger.warning("Generation request failed: %s", exc)
            self.failed.emit(str(exc))
        finally:
            self._reply.deleteLater()
            self.deleteLater()


class GenerationClient(QObject):
    """Opens generation streams against the configured endpoint."""

    def __init__(
        self,
        settings: Optional[KnitspaceSettings] = None,
        manager: Optional[QNetworkAccessManager] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._settings = settings or KnitspaceSettings()
        self._manager = manager or QNetworkAccessManager(self)

    @property
    def settings(self) -> KnitspaceSettings:
        return self._settings

    def build_request(self) -> QNetworkRequest:
        request = QNetworkRequest(QUrl(self._settings.endpoint))
        request.setHeader(QNetworkRequest.KnownHeaders.ContentTypeHeader, "application/json")
        if self._settings.stream_timeout_ms > 0:
            request.setTransferTimeout(self._settings.stream_timeout_ms)
        return request

    def open_stream(self, image_data_url: str, token: CancellationToken) -> GenerationStream:
        logger.info("POST %s for %s", self._settings.endpoint, token.owner)
        reply = self._manager.post(
            self.build_request(),
            build_request_body(image_data_url, self._settings.prompt),
        )
        return GenerationStream(reply, token, self)
