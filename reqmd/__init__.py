"""reqmd keeps requirement markdown documents in sync with source coverage tags."""

__version__ = "0.1.0"
