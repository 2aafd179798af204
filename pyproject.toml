[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "immutrees"
version = "0.1.0"
description = "Persistent tree nodes with structural sharing: B-trees and hash array mapped tries"
requires-python = ">=3.10"
dependencies = []
keywords = ["persistent", "immutable", "b-tree", "hamt", "copy-on-write", "data-structures"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["immutrees"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
