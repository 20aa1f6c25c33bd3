"""Exception taxonomy shared by the inspector, the HTTP layer and the CLI."""

from __future__ import annotations


class ModelVizError(Exception):
    """Base class for every error raised by modelviz."""


class ModelNotFound(ModelVizError):
    """Unknown or excluded model name, or unknown relation on a known model."""


class RecordNotFound(ModelVizError):
    """The model resolved but the identifier does not match a record."""


class AdapterDetectionFailure(ModelVizError):
    """No supported mapping library is present in the host process."""


class SnapshotVersionError(ModelVizError, ValueError):
    """A saved graph snapshot has an unsupported ``version``."""
