"""REST API for minting keys, publishing notes and listing stored notes.

The HTTP server runs as a background ``asyncio.Task`` alongside the
standard ``run_forever()`` cycle. Each ``run()`` cycle logs request
statistics and updates Prometheus metrics.

Routes:
    ``GET /new-keys``: a freshly minted, unrelated keypair.
    ``POST /publish-text-note``: publish ``{"msg": ...}`` through the relay
    session.
    ``GET /latest-text-notes?limit=N``: newest stored text notes first.
    ``GET /health``: liveness probe.

See Also:
    [EventStore][notebrotr.core.store.EventStore]: Queried for notes.
    [RelaySession][notebrotr.services.relay.RelaySession]: Publishes notes.
    [BaseService][notebrotr.core.base_service.BaseService]: Abstract
        base class providing lifecycle and metrics.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING, Any, ClassVar

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from nostr_sdk import NostrSdkError
from pydantic import BaseModel, Field

from notebrotr.core.base_service import BaseService
from notebrotr.core.exceptions import PublishingError, StorageError
from notebrotr.core.metrics import REQUEST_DURATION_SECONDS
from notebrotr.models import EventFilter, EventKind, Order, TextNote
from notebrotr.models.constants import ServiceName
from notebrotr.utils.keys import mint_identity

from .configs import ApiConfig


if TYPE_CHECKING:
    from types import TracebackType

    from notebrotr.core.store import EventStore
    from notebrotr.services.relay import RelaySession

_HTTP_ERROR_THRESHOLD = 400


class PublishRequest(BaseModel):
    """Body of ``POST /publish-text-note``."""

    msg: str = Field(min_length=1)


class Api(BaseService[ApiConfig]):
    """REST API over the event store and the relay session.

    Lifecycle:
        1. ``__aenter__``: start uvicorn as a background task.
        2. ``run()``: log request statistics and update Prometheus counters.
        3. ``__aexit__``: ask uvicorn to exit and let in-flight requests drain.

    Note:
        Rate limiting is left to a reverse proxy.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.API
    CONFIG_CLASS: ClassVar[type[ApiConfig]] = ApiConfig

    def __init__(
        self,
        store: EventStore,
        session: RelaySession,
        config: ApiConfig | None = None,
    ) -> None:
        super().__init__(store, config)
        self._session = session
        self._app = self._build_app()
        self._server: uvicorn.Server | None = None
        self._server_task: asyncio.Task[None] | None = None
        self._requests_total = 0
        self._requests_failed = 0

    @property
    def app(self) -> FastAPI:
        """The FastAPI application (usable without starting the server)."""
        return self._app

    async def __aenter__(self) -> Api:
        await super().__aenter__()

        config = uvicorn.Config(
            self._app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._server_task = asyncio.create_task(self._server.serve())
        self._logger.info(
            "http_server_started",
            host=self._config.host,
            port=self._config.port,
        )
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._server_task is not None:
            try:
                await asyncio.wait_for(
                    asyncio.shield(self._server_task), timeout=self._config.shutdown_timeout
                )
            except TimeoutError:
                self._logger.warning("http_drain_timeout", timeout_s=self._config.shutdown_timeout)
                self._server_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._server_task
            except Exception as e:  # server failure already surfaced by run()
                self._logger.warning("http_server_exit_error", error=str(e))
            self._server_task = None
        self._server = None
        self._logger.info("http_server_stopped")
        await super().__aexit__(_exc_type, _exc_val, _exc_tb)

    async def run(self) -> None:
        """Log request stats and update Prometheus counters.

        Raises:
            RuntimeError: If the HTTP server task died with an error.
        """
        task = self._server_task
        if task is not None and task.done():
            exc = task.exception() if not task.cancelled() else None
            if exc is not None:
                self._logger.error("http_server_crashed", error=str(exc))
                raise RuntimeError("HTTP server task has stopped unexpectedly") from exc
            self._logger.info("http_server_exited")
            self.request_shutdown()

        total = self._requests_total
        failed = self._requests_failed
        self._requests_total = 0
        self._requests_failed = 0

        self._logger.info(
            "cycle_stats",
            requests_total=total,
            requests_failed=failed,
            pending_sends=self._session.pending_sends,
        )
        self.inc_counter("requests_total", total)
        self.inc_counter("requests_failed", failed)

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    def _build_app(self) -> FastAPI:
        """Construct the FastAPI application."""
        app = FastAPI(title="notebrotr API")

        if self._config.cors_origins:
            app.add_middleware(
                CORSMiddleware,
                allow_origins=self._config.cors_origins,
                allow_methods=["GET", "POST"],
                allow_headers=["*"],
            )

        @app.middleware("http")
        async def log_requests(request: Request, call_next: Any) -> Response:
            start = time.monotonic()
            try:
                response: Response = await call_next(request)
            except Exception as exc:  # HTTP request error boundary
                self._logger.error(
                    "unhandled_error",
                    error=str(exc),
                    path=request.url.path,
                )
                response = JSONResponse(
                    {"error": "Internal server error"},
                    status_code=500,
                )
            duration = time.monotonic() - start
            self._requests_total += 1
            self._observe(request, response.status_code, duration)
            if response.status_code >= _HTTP_ERROR_THRESHOLD:
                self._requests_failed += 1
                self._logger.warning(
                    "request_failed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round(duration * 1000, 1),
                )
            else:
                self._logger.info(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=round(duration * 1000, 1),
                )
            return response

        @app.exception_handler(RequestValidationError)
        async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
            errors = [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ]
            return JSONResponse({"error": "Invalid request", "detail": errors}, status_code=400)

        @app.get("/health")
        async def health() -> dict[str, str]:
            return {"status": "ok"}

        @app.get("/new-keys")
        async def new_keys() -> JSONResponse:
            try:
                minted = mint_identity()
            except (NostrSdkError, ValueError) as e:
                self._logger.error("key_generation_failed", error=str(e))
                return JSONResponse({"error": "Key generation failed"}, status_code=500)
            return JSONResponse(minted.to_dict())

        @app.post("/publish-text-note")
        async def publish_text_note(body: PublishRequest) -> Response:
            try:
                event_id = await self._session.publish(body.msg)
            except PublishingError as e:
                return JSONResponse({"error": str(e)}, status_code=502)
            self._logger.info("note_submitted", id=event_id, length=len(body.msg))
            return Response(status_code=200)

        @app.get("/latest-text-notes")
        async def latest_text_notes(request: Request) -> JSONResponse:
            raw = request.query_params.get("limit")
            try:
                requested = self._config.default_limit if raw is None else int(raw)
            except ValueError:
                return JSONResponse({"error": "Invalid limit"}, status_code=400)
            if requested < 0:
                return JSONResponse({"error": "Invalid limit"}, status_code=400)

            limit = min(requested, self._config.max_limit)
            try:
                events = await asyncio.wait_for(
                    self._store.query(
                        EventFilter(kind=EventKind.TEXT_NOTE, limit=limit),
                        order=Order.DESC,
                    ),
                    timeout=self._config.request_timeout,
                )
            except TimeoutError:
                return JSONResponse({"error": "Query timeout"}, status_code=504)
            except StorageError as e:
                self._logger.error("notes_query_failed", error=str(e))
                return JSONResponse({"error": "Storage error"}, status_code=500)

            return JSONResponse([TextNote.from_event(event).to_dict() for event in events])

        return app

    def _observe(self, request: Request, status: int, duration: float) -> None:
        if not self._config.metrics.enabled:
            return
        route = request.scope.get("route")
        path = getattr(route, "path", "unmatched")
        REQUEST_DURATION_SECONDS.labels(route=path, status=str(status)).observe(duration)
