[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "elblogs"
version = "0.1.0"
description = "Parse AWS Elastic Load Balancer access logs and stream them from S3 as structured events"
requires-python = ">=3.10"
dependencies = []
keywords = ["aws", "elb", "load-balancer", "access-logs", "s3", "log-parsing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Log Analysis",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["elblogs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
