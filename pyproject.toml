[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bellacopia"
version = "0.1.0"
description = "Game-state core for a tile-based adventure: save store, resource table, map registry, modal stack, dialogue and battle modals."
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "rpg", "tilemap", "modal", "save-state"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Role-Playing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bellacopia"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
