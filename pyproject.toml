[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "rmqadmin"
version = "0.1.0"
description = "Client-side building blocks for a RocketMQ admin client: name server selection, broker data models, response processing and a group registry."
requires-python = ">=3.10"
dependencies = []
keywords = ["rocketmq", "message queue", "admin", "client", "name server"]
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
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["rmqadmin*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
