"""devstrap - declarative developer-machine provisioning."""

__version__ = "0.1.0"
