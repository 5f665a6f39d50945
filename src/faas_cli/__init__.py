"""Command-line client for an OpenFaaS function gateway."""

__version__ = "0.1.0"
