"""Media recording service: error codes, an in-process bus, format rules, recorders and a JSON request manager."""

__version__ = "0.1.0"