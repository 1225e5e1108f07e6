"""Switch an OpenVPN connection from a serial-port switch and report its status."""

__version__ = "0.1.0"