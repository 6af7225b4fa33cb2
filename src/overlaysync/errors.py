# SPDX-License-Identifier: Apache-2.0
"""Error taxonomy and error sinks.

Runtime failures in the synchronization engine are never raised to the host;
they are handed to an *error sink*, any callable accepting the exception.
"""

from __future__ import annotations

import logging
from typing import Callable

ErrorSink = Callable[["OverlaySyncError"], None]

_LOG = logging.getLogger("overlaysync")


class OverlaySyncError(Exception):
    """Base class for errors reported by overlaysync."""


class CatalogFetchError(OverlaySyncError):
    """The time-catalog endpoint was unreachable or returned a bad payload."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        variable: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.variable = variable
        self.status = status


class InconsistentStateError(OverlaySyncError):
    """An operation needed the image-service connection before it existed."""


def log_error_sink(error: OverlaySyncError) -> None:
    """Default sink: log the error, with the traceback only at debug level."""
    _LOG.error("%s: %s", type(error).__name__, error)
    if error.__cause__ is not None:
        _LOG.debug("caused by", exc_info=error.__cause__)
