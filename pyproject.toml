[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mediarepo"
version = "0.1.0"
description = "Storage and datastore layer for a Matrix media repository"
requires-python = ">=3.10"
keywords = ["matrix", "media", "repository", "thumbnails", "sqlite", "datastore"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database",
]
dependencies = [
    "cachetools>=4.2",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "responses>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["mediarepo"]

[tool.hatch.build.targets.sdist]
include = ["mediarepo", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true

[tool.coverage.run]
source = ["mediarepo"]
branch = true
