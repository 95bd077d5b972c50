[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "breachcheck"
version = "1.0.0"
description = "HTTP service that checks whether an e-mail address appears in known data breaches"
requires-python = ">=3.10"
keywords = ["email", "breach", "security", "http", "api", "flask", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Security",
]
dependencies = [
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
breachcheck = "breachcheck.server:main"

[tool.hatch.build.targets.wheel]
packages = ["breachcheck"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
