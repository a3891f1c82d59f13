[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slorules"
version = "0.1.0"
description = "Multiwindow, multi-burn-rate SLO alert windows, SLO spec loading and Prometheus operator rule output."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "slo",
    "sli",
    "prometheus",
    "prometheus-operator",
    "alerting",
    "error-budget",
    "burn-rate",
    "kubernetes",
    "monitoring",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["slorules"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
