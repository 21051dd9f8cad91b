[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edgeservice"
version = "0.1.0"
description = "Edge camera inspection service: captures stream snapshots with ffmpeg and checks them against an AI service over HTTP"
requires-python = ">=3.10"
keywords = ["camera", "rtsp", "ffmpeg", "inspection", "http", "edge"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Multimedia :: Video",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
edgeservice = "edgeservice.main:main"

[tool.hatch.build.targets.wheel]
packages = ["edgeservice"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
