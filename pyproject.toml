[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "anystore"
version = "0.1.0"
description = "Building blocks for a document store on SQLite: value encoding, a Mongo-style query language, sort keys, modifiers and SQL generation"
requires-python = ">=3.10"
dependencies = []
keywords = ["document store", "sqlite", "query", "filter", "modifier", "index bounds"]
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
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["anystore*"]

[tool.pytest.ini_options]
addopts = "-ra"
