"""SmartDisplay: a self-hosted picture frame server."""

__version__ = "1.0.0"
