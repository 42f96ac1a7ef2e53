"""Request decoding and validation for a serverless image handler."""

__version__ = "0.1.0"
