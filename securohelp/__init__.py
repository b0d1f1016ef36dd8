"""SecuroHelp: insurance-claim case service."""

__version__ = "0.1.0"
