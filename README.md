# edgeservice

A small HTTP service that runs next to your cameras. It grabs one frame from a
camera stream (RTSP or HTTP) with `ffmpeg`, sends the frame to an AI checking
service, and returns the verdict as JSON. You can check cameras one at a time.
You can also check a batch as a background task and poll it for the results.

The package uses only the Python standard library.

## Installation

```
pip install .
```

## Running

```
edgeservice -c /path/to/config.json
```

The `-c` option is required. Without it, the command prints a usage line and
exits with status 1.

The service finds the files it needs in the directory of the program being run,
which is the directory of `sys.argv[0]`:

- `ffmpeg` in that directory is the executable that grabs frames.
- `snapshot/` holds each captured frame briefly. The frame is deleted once it has been read.
- `log/edgeservice.log` receives the log. It rotates at 20 MiB and keeps five old files.

The configuration file is a JSON object:

```json
{
  "rest_port": 18080,
  "ai_service_host": "127.0.0.1",
  "ai_service_port": 1055
}
```

- `rest_port` defaults to 18080.
- `ai_service_host` and `ai_service_port` default to `DEFAULT_AI_HOST` and `DEFAULT_AI_PORT` in `edgeservice.inspection`.
- If the file does not exist or cannot be read, the defaults are used.
- If the file is not valid JSON, `load_global_config` raises `ConfigError` and the service does not start.

The server listens on all interfaces. It runs until it is interrupted with Ctrl-C.

## HTTP API

Every JSON response carries `Access-Control-Allow-Origin: *`. An `OPTIONS`
request on any path is answered with status 204 and the CORS preflight headers.
Unknown paths get status 404 with an empty body.

Errors are reported in the JSON body:

- If a POST body is not valid JSON, the reply has `code` 2.
- If a parameter is invalid, the reply has `code` 1 and the reason in `msg`.

### `POST /api/camera/capture_and_check`

```json
{"camera_id": "42", "rtsp_url": "rtsp://camera.example.com/stream"}
```

This captures one frame and checks it. The reply depends on the outcome:

- If the AI service answers with code `100000`, its answer is returned unchanged.
- If the AI service answers `200220` (nothing detected), the reply has code `200220`. The check can be retried.
- If no frame could be captured, the reply has code 3.
- If the AI service cannot be reached, the reply has code 500.
- Otherwise the reply carries the AI service's code and message.

`camera_id` may be a digit string, an integer or a float. A float is truncated.
`rtsp_url` must start with `rtsp://`, `http://` or `https://` and contain no
whitespace.

### `POST /api/camera/async_capture_and_check`

```json
{
  "timeout": "30",
  "cameras": [
    {"camera_id": 1, "rtsp_url": "rtsp://camera.example.com/1"},
    {"camera_id": 2, "rtsp_url": "http://camera.example.com/2.flv"}
  ]
}
```

This queues the batch and replies at once with `{"code": 0, "task_id": ...}`.
The `task_id` is a UUID.

`timeout` is in seconds. It may be an integer or a digit string, and defaults to
10. Cameras that are reached after the timeout has run out are not checked;
their entries have code 408.

### `GET /api/camera/async_capture_and_check_result?task_id=<uuid>`

This returns the result of a finished batch. The `results` field holds one entry
per camera, and each entry carries its `camera_id`.

If the task is unknown or still running, the reply has code 404. Finished
results are dropped after about an hour.

### `POST /api/camera/gen_play_url`

```json
{"camera_id": 42, "play_host": "media.example.com", "play_port": 8080}
```

This replies with `{"play_url": "http://media.example.com:8080/live/42"}`.

- `play_host` must be an IPv4 address or a name made of letters, digits, `-` and `.`.
- `play_port` may be an integer or a digit string between 1025 and 65535. If it is left out, the URL uses port 0.

## Using it from Python

`Inspector` in `edgeservice.inspection` does the checking and holds the batch
results:

```python
from edgeservice.inspection import Inspector

inspector = Inspector("/opt/edge/ffmpeg", "/opt/edge/snapshot", "127.0.0.1", 1055)

# One camera, synchronously.
print(inspector.capture_and_check(1, "rtsp://camera.example.com/1"))

# A batch in the background; poll get_result until the code is no longer 404.
inspector.start_worker()
accepted = inspector.submit([(1, "rtsp://camera.example.com/1")], 10)
print(inspector.get_result(accepted["task_id"]))
inspector.stop_worker()
```

`edgeservice.http_server.dispatch(inspector, method, target, body)` answers one
request without a network. It returns a `Response` with `status`, `payload`,
`headers` and the encoded `body`.

`HttpServer(port, inspector)` serves the API:

- `start()` blocks while it serves.
- `shutdown()` stops it from another thread.
- Port 0 picks a free port. The chosen port is stored in `port` once the `ready` event is set.

## What it does not do

- The service offers only the HTTP API above. It has no other RPC interface, and the configuration has no other port setting.
- Batch results are kept in memory only. They are lost when the process stops.
- There is no authentication on any endpoint.