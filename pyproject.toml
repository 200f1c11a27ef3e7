[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "phylorun"
version = "0.1.0"
description = "Run configuration, partitioned alignments, tree bookkeeping and resource estimation for maximum-likelihood phylogenetic analyses"
requires-python = ">=3.10"
dependencies = []
keywords = ["phylogenetics", "alignment", "partition", "maximum-likelihood", "bioinformatics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["phylorun"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
