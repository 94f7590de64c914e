[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "distlab"
version = "0.1.0"
description = "Distributed-systems building blocks: a simulated RPC network, a MapReduce framework, a replicated key/value client and a key/value history model"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "mapreduce",
    "rpc",
    "distributed-systems",
    "key-value",
    "simulation",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mrsequential = "distlab.cli:mrsequential_main"
mrcoordinator = "distlab.cli:mrcoordinator_main"
mrworker = "distlab.cli:mrworker_main"

[tool.setuptools.packages.find]
include = ["distlab*"]

[tool.pytest.ini_options]
addopts = "-ra"
