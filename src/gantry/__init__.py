"""Run project commands inside a lazily provisioned Docker container."""

__version__ = "0.1.0"
