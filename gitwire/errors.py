"""Exceptions raised by gitwire."""

from __future__ import annotations


class GitWireError(Exception):
    """Base class for all gitwire errors."""


class ConfigError(GitWireError):
    """The declarative config could not be loaded. Always fatal."""


class RepositoryRootError(ConfigError):
    """The current directory is not inside a git work tree."""


class ConfigNotFoundError(ConfigError):
    """There is no config file at the repository root."""


class ConfigUnreadableError(ConfigError):
    """The config file exists but could not be read."""


class ConfigMalformedError(ConfigError):
    """The config content does not match the expected schema."""


class ConfigUnsoundError(ConfigError):
    """An entry's `src` or `dst` contains `.`, `..` or a `.git` component."""


class ConfigDuplicateNameError(ConfigError):
    """Two entries share the same non-empty `name`."""


class EntryNotFoundError(ConfigError):
    """A requested entry name does not exist in the config."""


class LockError(GitWireError):
    """The repository lock table is in an inconsistent state.

    Deduplication of fetches cannot be guaranteed once this is raised, so
    the sequencer treats it as fatal for the whole run.
    """


class CheckoutError(GitWireError):
    """Materializing a remote checkout failed.

    Scoped to a single cache key: every entry sharing the key fails, entries
    with other keys proceed.
    """

    def __init__(self, url: str, detail: str, key: str | None = None) -> None:
        self.url = url
        self.detail = detail
        self.key = key
        where = f"{url} (key {key})" if key else url
        super().__init__(f"checkout of {where} failed: {detail}")


class RemoteUnreachableError(CheckoutError):
    """The remote could not be contacted."""


class AuthenticationError(CheckoutError):
    """The remote rejected our credentials."""


class UnknownRefError(CheckoutError):
    """The requested branch, tag or commit does not exist on the remote."""


class UnsupportedStrategyError(CheckoutError):
    """The remote or local git cannot perform the requested checkout method."""


class SyncError(GitWireError):
    """Copying files into the destination tree failed for one entry."""

    def __init__(self, label: str, detail: str) -> None:
        self.label = label
        self.detail = detail
        super().__init__(f"sync of {label} failed: {detail}")
