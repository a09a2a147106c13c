"""Exception types raised by the reducer core and its HTTP surface."""


class ReducerError(Exception):
    """Base class for all reducer failures."""


class InvalidConfiguration(ReducerError, ValueError):
    """A kernel, metric, palette or numeric option could not be used."""


class SourceFetchError(ReducerError, RuntimeError):
    """The upstream image could not be retrieved after all retries."""
