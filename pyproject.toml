[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sipscope"
version = "0.1.0"
description = "SIP dialog and RTP/RTCP stream tracking from captured packets"
requires-python = ">=3.10"
dependencies = []
keywords = ["sip", "rtp", "rtcp", "voip", "sdp", "telephony"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sipscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
