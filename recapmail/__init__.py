"""Top-level package for recapmail."""

from . import config, mailer, providers, storage, summaries

__all__ = ["config", "mailer", "providers", "storage", "summaries"]
