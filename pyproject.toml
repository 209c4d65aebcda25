[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webserv"
version = "0.1.0"
description = "Configuration parsing and incremental HTTP/1.x request parsing for a small nginx-style web server"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "web server", "configuration", "parser", "multipart", "chunked"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["webserv"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"
