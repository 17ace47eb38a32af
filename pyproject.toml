[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "feedfetcher"
version = "0.1.0"
description = "Fetch entries for feeds through pluggable strategies, track batches of fetches and store the results in SQLite"
requires-python = ">=3.10"
dependencies = []
keywords = ["feeds", "fetching", "yt-dlp", "sqlite", "asyncio", "batch"]
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
    "Framework :: AsyncIO",
    "Topic :: Internet",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["feedfetcher"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
