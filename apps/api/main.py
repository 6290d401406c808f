"""FastAPI wrapper for the prose rewrite and split pipelines."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, ValidationError

from core.rewrite.pipeline import rewrite_deferred
from core.rewrite.substitute import MAX_SUBSTITUTIONS
from core.rules.mode_store import ModeStore
from core.rules.models import DEFAULT_EXCEPTION_WORDS, ModeSettings
from core.split.splitter import DEFAULT_HEADER_PATTERN, SplitMode, split
from core.utils.errors import InvalidPatternError, ModeStoreError, NoMatchError
from core.utils.notices import Notice

app = FastAPI(title="prose-rewrite API", version="0.1.0")
logger = logging.getLogger("prose.api")

_DEFAULT_MAX_INPUT_CHARS = 2_000_000
_DEFAULT_STORE_PATH = "prose_settings.json"
_REQUEST_ID_HEADER = "X-Prose-Request-Id"


class RewriteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    settings: ModeSettings | None = None
    mode: str | None = None


class SplitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    mode: SplitMode


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(_REQUEST_ID_HEADER, request_id)
    return response


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Metadata endpoint for clients: defaults and limits."""

    request_id = _request_id_from_request(request)
    payload = {
        "version": _package_version(),
        "split_kinds": ["count", "pattern"],
        "default_header_pattern": DEFAULT_HEADER_PATTERN,
        "default_exception_words": list(DEFAULT_EXCEPTION_WORDS),
        "max_substitutions": _max_substitutions(),
        "max_input_chars": _max_input_chars(),
    }
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


@app.get("/v1/modes")
async def modes_v1(request: Request) -> JSONResponse:
    """List mode names in the configured store."""

    request_id = _request_id_from_request(request)
    store = _mode_store()
    try:
        payload = {"modes": store.list_names(), "current_mode": store.current_name()}
    except ValueError as exc:
        return _handle_api_error(_store_error(exc), request_id, failure_stage="load_store")
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


@app.post("/v1/rewrite", response_model=None)
async def rewrite_v1(request: Request) -> JSONResponse:
    """Rewrite one text with the given or stored mode settings."""

    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    failure_stage = "validate_inputs"

    try:
        body = await _read_model(request, RewriteRequest)
        _check_input_size(body.text)
        failure_stage = "resolve_settings"
        settings = _resolve_settings(body)

        _log_event(
            logging.INFO,
            "start",
            request_id,
            kind="rewrite",
            input_chars=len(body.text),
            rules=len(settings.rules),
            auto_caps=settings.auto_caps,
        )
        failure_stage = "pipeline"
        output = await rewrite_deferred(
            body.text, settings, max_substitutions=_max_substitutions()
        )
    except ApiRequestError as exc:
        return _handle_api_error(exc, request_id, failure_stage=failure_stage)

    _log_notices(output.notices, request_id)
    payload = {
        **output.summary().model_dump(mode="json"),
        "markup": output.markup,
        "text": output.text,
    }
    _log_event(
        logging.INFO,
        "done",
        request_id,
        kind="rewrite",
        replaced_count=output.replaced_count,
        caps_count=output.caps_count,
        truncated=output.truncated,
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


@app.post("/v1/split", response_model=None)
async def split_v1(request: Request) -> JSONResponse:
    """Split one text by part count or by a boundary pattern."""

    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    failure_stage = "validate_inputs"

    try:
        body = await _read_model(request, SplitRequest)
        _check_input_size(body.text)
        _log_event(logging.INFO, "start", request_id, kind="split", split_kind=body.mode.kind)
        failure_stage = "pipeline"
        try:
            result = await run_in_threadpool(split, body.text, body.mode)
        except InvalidPatternError as exc:
            raise ApiRequestError(
                status_code=400,
                error_code="INVALID_PATTERN",
                message=str(exc),
                detail={"pattern": exc.pattern},
            ) from exc
        except NoMatchError as exc:
            raise ApiRequestError(
                status_code=404,
                error_code="NO_MATCH",
                message="split pattern matched nothing",
                detail={"pattern": exc.pattern},
            ) from exc
    except ApiRequestError as exc:
        return _handle_api_error(exc, request_id, failure_stage=failure_stage)

    _log_notices(result.notices, request_id)
    _log_event(
        logging.INFO,
        "done",
        request_id,
        kind="split",
        parts=len(result.parts),
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content=result.model_dump(mode="json"),
    )


async def _read_model(request: Request, model: type[BaseModel]) -> Any:
    try:
        raw = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message="request body must be valid JSON",
        ) from exc

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ApiRequestError(
            status_code=422,
            error_code="INVALID_ARGUMENT",
            message="request body failed validation",
            detail={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def _check_input_size(text: str) -> None:
    max_chars = _max_input_chars()
    if len(text) > max_chars:
        raise ApiRequestError(
            status_code=413,
            error_code="INPUT_TOO_LARGE",
            message="input text too large",
            detail={"max_input_chars": max_chars, "input_chars": len(text)},
        )


def _resolve_settings(body: RewriteRequest) -> ModeSettings:
    if body.settings is not None and body.mode is not None:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT_CONFLICT",
            message="settings and mode cannot be used together",
        )
    if body.settings is not None:
        return body.settings

    store = _mode_store()
    try:
        name = body.mode or store.current_name()
        return store.get(name)
    except ValueError as exc:
        raise _store_error(exc) from exc


def _store_error(exc: ValueError) -> ApiRequestError:
    if isinstance(exc, ModeStoreError):
        return ApiRequestError(
            status_code=404,
            error_code="UNKNOWN_MODE",
            message=str(exc),
            detail={"mode": exc.mode},
        )
    return ApiRequestError(status_code=500, error_code="STORE_ERROR", message=str(exc))


def _mode_store() -> ModeStore:
    return ModeStore(Path(os.getenv("PROSE_SETTINGS_STORE", _DEFAULT_STORE_PATH)))


def _max_input_chars() -> int:
    raw = os.getenv("PROSE_MAX_INPUT_CHARS")
    if raw is None:
        return _DEFAULT_MAX_INPUT_CHARS
    try:
        parsed = int(raw)
    except ValueError:
        return _DEFAULT_MAX_INPUT_CHARS
    return parsed if parsed > 0 else _DEFAULT_MAX_INPUT_CHARS


def _max_substitutions() -> int:
    raw = os.getenv("PROSE_MAX_SUBSTITUTIONS")
    if raw is None:
        return MAX_SUBSTITUTIONS
    try:
        parsed = int(raw)
    except ValueError:
        return MAX_SUBSTITUTIONS
    return parsed if parsed > 0 else MAX_SUBSTITUTIONS


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    return request_id


def _handle_api_error(exc: ApiRequestError, request_id: str, *, failure_stage: str) -> JSONResponse:
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        failure_stage=failure_stage,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


def _package_version() -> str:
    try:
        return importlib.metadata.version("prose-rewrite")
    except importlib.metadata.PackageNotFoundError:
        return app.version


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={_REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _log_notices(notices: list[Notice], request_id: str) -> None:
    for notice in notices:
        _log_event(logging.WARNING, "warning", request_id, notice_code=notice.code)


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
