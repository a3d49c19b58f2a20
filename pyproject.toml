[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mcpstdio"
version = "0.1.0"
description = "Asyncio stdio transport for Model Context Protocol JSON-RPC messaging"
requires-python = ">=3.10"
dependencies = []
keywords = ["mcp", "model-context-protocol", "json-rpc", "stdio", "asyncio", "transport"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["mcpstdio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
