"""Git working-copy operations (status, staging, stash, tags, remotes) and command-bar helpers."""

__version__ = "0.1.0"