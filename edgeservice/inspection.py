"""Camera snapshot capture, AI checking and the asynchronous inspection queue."""

from __future__ import annotations

import base64
import copy
import json
import logging
import subprocess
import threading
import time
import urllib.error
import urllib.request
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from edgeservice.validation import generate_uuid, is_digits

log = logging.getLogger(__name__)

DEFAULT_AI_HOST = "124.70.8.249"
DEFAULT_AI_PORT = 1055
RESULT_MAX_AGE = 3600.0
CLEAN_INTERVAL = 600.0

_AI_PATH = "/v1/eyes/exists"
_AI_TIMEOUT = 5.0
_INT32_MAX = 2**31 - 1


def _ai_failure() -> dict[str, Any]:
    return {"code": 500, "msg": "AI服务请求失败"}


@dataclass
class InspectTask:
    """A batch of cameras to inspect under one task id."""

    task_id: str
    cameras: list[tuple[int, str]] = field(default_factory=list)
    timeout_sec: int = 10


def capture_image(ffmpeg_path, snapshot_dir, rtsp_url: str, camera_id: int) -> str | None:
    """Grab one frame from *rtsp_url* with ffmpeg; return it base64-encoded.

    Returns None when ffmpeg fails or produces no image.
    """
    directory = Path(snapshot_dir)
    directory.mkdir(parents=True, exist_ok=True)
    out_path = directory / f"{camera_id}.jpg"

    command = [str(ffmpeg_path), "-y"]
    if rtsp_url.startswith("rtsp://"):
        command += ["-rtsp_transport", "tcp"]
    command += ["-i", rtsp_url, "-frames:v", "1", "-q:v", "2", "-f", "image2", str(out_path)]

    try:
        completed = subprocess.run(
            command, stdin=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=False
        )
    except OSError as exc:
        log.error("无法启动ffmpeg %s: %s", ffmpeg_path, exc)
        return None
    if completed.returncode != 0:
        return None

    try:
        data = out_path.read_bytes()
    except OSError:
        data = b""
    finally:
        out_path.unlink(missing_ok=True)
    if not data:
        return None
    return base64.b64encode(data).decode("ascii")


def post_to_ai_service(image_base64: str, host: str, port: int) -> Any:
    """Send an image to the AI check service and return its decoded reply.

    Statuses other than 200 and 400, and transport failures, give a
    code 500 result.
    """
    body = json.dumps({"image_base64": image_base64}).encode("utf-8")
    request = urllib.request.Request(
        f"http://{host}:{port}{_AI_PATH}",
        data=body,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(request, timeout=_AI_TIMEOUT) as response:
            status, payload = response.status, response.read()
    except urllib.error.HTTPError as exc:
        status, payload = exc.code, exc.read()
    except (urllib.error.URLError, OSError) as exc:
        log.warning("AI服务请求失败: %s", exc)
        return _ai_failure()
    if status not in (200, 400):
        return _ai_failure()
    return json.loads(payload)


def interpret_ai_result(ai_result: Any) -> dict[str, Any]:
    """Map the AI service reply onto the service's result codes."""
    ai_code = "-1"
    ai_msg = "AI服务未知错误"
    if isinstance(ai_result, dict):
        code = ai_result.get("code")
        if isinstance(code, str):
            ai_code = code
        elif isinstance(code, bool):
            pass
        elif isinstance(code, int):
            ai_code = str(code)
        elif isinstance(code, float):
            ai_code = f"{code:f}"
        if isinstance(ai_result.get("msg"), str):
            ai_msg = ai_result["msg"]

    if ai_code == "100000":
        return dict(ai_result)
    if ai_code == "200220":
        return {"code": 200220, "msg": "AI未检测到目标(可重试)"}
    code_int = -1
    if is_digits(ai_code):
        value = int(ai_code)
        if value <= _INT32_MAX:
            code_int = value
    return {"code": code_int, "msg": ai_msg}


class Inspector:
    """Runs camera checks, queues batch tasks and keeps their results."""

    def __init__(self, ffmpeg_path, snapshot_dir, ai_host=DEFAULT_AI_HOST, ai_port=DEFAULT_AI_PORT):
        self.ffmpeg_path = Path(ffmpeg_path)
        self.snapshot_dir = Path(snapshot_dir)
        self.ai_host = ai_host
        self.ai_port = ai_port
        self._results: dict[str, tuple[float, dict[str, Any]]] = {}
        self._results_lock = threading.Lock()
        self._queue: deque[InspectTask] = deque()
        self._cond = threading.Condition()
        self._exit = False
        self._worker: threading.Thread | None = None
        self._cleaner: threading.Thread | None = None

    def capture_and_check(self, camera_id: int, rtsp_url: str) -> dict[str, Any]:
        """Snapshot one camera and have the AI service check the image."""
        if not rtsp_url:
            return {"code": 1, "msg": "参数缺失"}
        image = capture_image(self.ffmpeg_path, self.snapshot_dir, rtsp_url, camera_id)
        if image is None:
            return {"code": 3, "msg": "截图失败"}
        return interpret_ai_result(post_to_ai_service(image, self.ai_host, self.ai_port))

    def submit(self, cameras: Iterable[tuple[int, str]], timeout_sec: int) -> dict[str, Any]:
        """Queue a batch of cameras; return the acknowledgement with its task id."""
        task = InspectTask(generate_uuid(), list(cameras), timeout_sec)
        with self._cond:
            self._queue.append(task)
            self._cond.notify()
        return {"code": 0, "msg": "任务已提交", "task_id": task.task_id}

    def run_task(self, task: InspectTask) -> dict[str, Any]:
        """Inspect every camera of *task*, store and return the batch result."""
        start = time.monotonic()
        results = []
        for camera_id, rtsp_url in task.cameras:
            remain = task.timeout_sec - int(time.monotonic() - start)
            if remain <= 0:
                results.append({"code": 408, "msg": "轮检超时", "camera_id": camera_id})
                continue
            result = self.capture_and_check(camera_id, rtsp_url)
            result["camera_id"] = camera_id
            results.append(result)
        summary = {
            "code": 0,
            "msg": "自动巡检完成",
            "results": results,
            "task_id": task.task_id,
        }
        with self._results_lock:
            self._results[task.task_id] = (time.monotonic(), summary)
        return copy.deepcopy(summary)

    def get_result(self, task_id: str) -> dict[str, Any]:
        """Return the stored result of *task_id*, or a code 404 result."""
        with self._results_lock:
            entry = self._results.get(task_id)
            if entry is None:
                return {"code": 404, "msg": "未找到该巡检任务"}
            return copy.deepcopy(entry[1])

    def start_worker(self) -> None:
        """Start the background thread that runs queued tasks."""
        with self._cond:
            if self._worker is not None and self._worker.is_alive():
                return
            self._exit = False
            self._worker = threading.Thread(
                target=self._work, name="inspect-worker", daemon=True
            )
            self._worker.start()

    def stop_worker(self) -> None:
        """Ask the worker to finish the queued tasks and exit."""
        with self._cond:
            self._exit = True
            self._cond.notify_all()

    def _work(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._exit or bool(self._queue))
                if not self._queue:
                    return
                task = self._queue.popleft()
            try:
                self.run_task(task)
            except Exception:
                log.exception("巡检任务%s处理失败", task.task_id)

    def start_cleaner(self) -> None:
        """Start the thread that drops results older than an hour."""
        with self._results_lock:
            if self._cleaner is not None:
                return
            self._cleaner = threading.Thread(
                target=self._clean_forever, name="inspect-cleaner", daemon=True
            )
            self._cleaner.start()

    def _clean_forever(self) -> None:
        while True:
            time.sleep(CLEAN_INTERVAL)
            self.purge_expired(RESULT_MAX_AGE)

    def purge_expired(self, max_age: float) -> int:
        """Drop results at least *max_age* seconds old; return how many went."""
        now = time.monotonic()
        with self._results_lock:
            expired = [
                task_id
                for task_id, (stored_at, _) in self._results.items()
                if now - stored_at >= max_age
            ]
            for task_id in expired:
                del self._results[task_id]
        return len(expired)