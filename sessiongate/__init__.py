"""sessiongate - revocable session credentials for HTTP APIs."""

__version__ = "0.1.0"
