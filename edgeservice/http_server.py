"""RESTful front end of the camera inspection service."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

from edgeservice.validation import (
    CameraIdError,
    is_digits,
    is_valid_host,
    is_valid_url,
    is_valid_uuid,
    parse_camera_id,
)

log = logging.getLogger(__name__)

CAPTURE_PATH = "/api/camera/capture_and_check"
ASYNC_CAPTURE_PATH = "/api/camera/async_capture_and_check"
ASYNC_RESULT_PATH = "/api/camera/async_capture_and_check_result"
PLAY_URL_PATH = "/api/camera/gen_play_url"

DEFAULT_TIMEOUT_SEC = 10

_INT32_MAX = 2**31 - 1
_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


@dataclass
class Response:
    """An HTTP reply: status, JSON payload (or none) and headers."""

    status: int = 200
    payload: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def body(self) -> bytes:
        """The payload as compact UTF-8 JSON with sorted keys."""
        if self.payload is None:
            return b""
        text = json.dumps(
            self.payload, ensure_ascii=False, sort_keys=True, separators=(",", ":")
        )
        return text.encode("utf-8")


class _Rejected(Exception):
    """A request parameter failed validation."""


def _json_response(payload: Any) -> Response:
    return Response(
        200,
        payload,
        {"Access-Control-Allow-Origin": "*", "Content-Type": "application/json"},
    )


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name!r}")


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _stoi(digits: str) -> int:
    value = int(digits)
    if value > _INT32_MAX:
        raise ValueError("stoi")
    return value


def handle_json_post(body, handler: Callable[[Any], Any]) -> Response:
    """Parse *body* as strict JSON and answer with what *handler* returns.

    Malformed JSON and exceptions escaping the handler give a code 2 reply.
    """
    try:
        text = bytes(body).decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
        data = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, TypeError):
        log.error("JSON语法检测未通过: %r", body)
        return _json_response(
            {"code": 2, "msg": "JSON格式错误(语法检测未通过，请检查引号/逗号/转义符)"}
        )
    try:
        payload = handler(data)
    except Exception as exc:
        log.error("JSON解析异常: %s", exc)
        return _json_response({"code": 2, "msg": f"JSON格式错误(解析异常)：{exc}"})
    return _json_response(payload)


def _checked(route: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
    def run(inspector, data):
        try:
            return route(inspector, data)
        except (_Rejected, CameraIdError) as exc:
            return {"code": 1, "msg": str(exc)}

    return run


def _rtsp_url(data: Any) -> str:
    value = data.get("rtsp_url") if isinstance(data, dict) else None
    if not isinstance(value, str):
        raise _Rejected("rtsp_url必须为字符串")
    if not value or not is_valid_url(value):
        raise _Rejected("rtsp_url必须为合法的URL")
    return value


@_checked
def _capture_and_check(inspector, data):
    camera_id = parse_camera_id(data, "camera_id")
    rtsp_url = _rtsp_url(data)
    return inspector.capture_and_check(camera_id, rtsp_url)


@_checked
def _async_capture_and_check(inspector, data):
    is_object = isinstance(data, dict)
    timeout_sec = DEFAULT_TIMEOUT_SEC
    if is_object and "timeout" in data:
        raw = data["timeout"]
        if isinstance(raw, str):
            if not is_digits(raw):
                raise _Rejected("timeout必须为数字字符串")
            timeout_sec = _stoi(raw)
        elif _is_integer(raw):
            timeout_sec = raw
        else:
            raise _Rejected("timeout字段类型不支持")

    entries = data.get("cameras") if is_object else None
    if not isinstance(entries, list):
        raise _Rejected("参数缺失或格式错误")
    cameras = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise _Rejected("cameras数组元素必须为对象")
        cameras.append((parse_camera_id(entry, "camera_id"), _rtsp_url(entry)))
    return inspector.submit(cameras, timeout_sec)


@_checked
def _gen_play_url(inspector, data):
    camera_id = parse_camera_id(data, "camera_id")
    host = data.get("play_host")
    if not isinstance(host, str):
        raise _Rejected("play_host必须存在且为字符串")
    if not is_valid_host(host):
        raise _Rejected("play_host必须为合法的IP或域名")

    port = 0
    if "play_port" in data:
        raw = data["play_port"]
        if _is_integer(raw):
            value = raw
        elif isinstance(raw, str) and is_digits(raw):
            value = _stoi(raw)
        else:
            raise _Rejected("play_port必须为整型或数字字符串")
        if value <= 1024 or value > 65535:
            raise _Rejected("play_port必须在1025~65535之间")
        port = value

    play_url = f"http://{host}:{port}/live/{camera_id}"
    if not is_valid_url(play_url):
        raise _Rejected("生成的play_url不合法")
    return {"play_url": play_url}


def _async_result(inspector, query: str) -> dict[str, Any]:
    params = parse_qs(query, keep_blank_values=True)
    if "task_id" not in params:
        return {"code": 1, "msg": "task_id参数缺失"}
    task_id = params["task_id"][0]
    if not task_id:
        return {"code": 1, "msg": "task_id不能为空"}
    if not is_valid_uuid(task_id):
        return {"code": 1, "msg": "task_id必须为合法的uuid字符串"}
    log.info("收到/async_capture_and_check_result查询: %s", task_id)
    return inspector.get_result(task_id)


_POST_ROUTES = {
    CAPTURE_PATH: _capture_and_check,
    ASYNC_CAPTURE_PATH: _async_capture_and_check,
    PLAY_URL_PATH: _gen_play_url,
}


def dispatch(inspector, method: str, target: str, body=b"") -> Response:
    """Route one request to its handler and return the reply."""
    parts = urlsplit(target)
    method = method.upper()
    if method == "OPTIONS":
        return Response(204, None, dict(_PREFLIGHT_HEADERS))
    if method == "POST":
        route = _POST_ROUTES.get(parts.path)
        if route is not None:
            return handle_json_post(body, lambda data: route(inspector, data))
    elif method == "GET" and parts.path == ASYNC_RESULT_PATH:
        return _json_response(_async_result(inspector, parts.query))
    return Response(404)


def _make_handler(inspector) -> type[BaseHTTPRequestHandler]:
    class _Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def _serve(self) -> None:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                length = 0
            body = self.rfile.read(length) if length > 0 else b""
            response = dispatch(inspector, self.command, self.path, body)
            payload = response.body
            self.send_response(response.status)
            for name, value in response.headers.items():
                self.send_header(name, value)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if payload:
                self.wfile.write(payload)

        do_GET = _serve
        do_POST = _serve
        do_OPTIONS = _serve

        def log_message(self, format, *args):  # noqa: A002
            log.debug("%s - %s", self.address_string(), format % args)

    return _Handler


class HttpServer:
    """Threaded HTTP server exposing the inspection API."""

    def __init__(self, port: int, inspector):
        self.port = port
        self.inspector = inspector
        self.ready = threading.Event()
        self._server: ThreadingHTTPServer | None = None
        inspector.start_cleaner()

    def start(self) -> None:
        """Bind to all interfaces and serve until shut down."""
        server = ThreadingHTTPServer(("0.0.0.0", self.port), _make_handler(self.inspector))
        server.daemon_threads = True
        self._server = server
        self.port = server.server_address[1]
        log.info("[edgeservice] HTTP server listening on port %d", self.port)
        self.ready.set()
        try:
            server.serve_forever()
        finally:
            server.server_close()

    def shutdown(self) -> None:
        """Stop a running server."""
        if self._server is not None:
            self._server.shutdown()