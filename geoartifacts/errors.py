"""
Exception hierarchy for geoartifacts.

Every failure surfaced to callers derives from ``GeoArtifactsError`` and
also from the closest builtin, so ``except ValueError`` style handlers in
downstream code keep working.
"""


class GeoArtifactsError(Exception):
    """Base class for all geoartifacts errors."""


class InvalidArgument(GeoArtifactsError, ValueError):
    """A selector value is outside its legal set.

    Raised before any network access; never retried.
    """


class NotFoundError(GeoArtifactsError, LookupError):
    """A well-formed query matched nothing.

    Either no catalog row matches, or the provider answered 404 for the
    resolved URL.
    """


class DownloadError(GeoArtifactsError, IOError):
    """Network or server failure while fetching an uncached resource."""

    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url


class SchemaMismatch(GeoArtifactsError, KeyError):
    """A loaded table lacks the columns needed to build geometry."""

    def __init__(self, message, missing=()):
        super().__init__(message)
        self.missing = list(missing)

    def __str__(self):
        # KeyError.__str__ would repr() the message.
        return str(self.args[0]) if self.args else ""
