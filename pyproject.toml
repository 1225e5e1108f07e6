[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "vpnswitch"
version = "0.1.0"
description = "Toggle an OpenVPN connection from a switch on a serial port and announce status changes as desktop notifications"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["vpn", "openvpn", "serial", "daemon", "unix-socket", "notifications"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
vpnswitch-daemon = "vpnswitch.daemon:main"
vpnswitch-notify = "vpnswitch.status_listener:main"

[tool.setuptools.packages.find]
include = ["vpnswitch*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
