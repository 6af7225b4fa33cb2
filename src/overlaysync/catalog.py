# SPDX-License-Identifier: Apache-2.0
"""Available time steps for an image-service variable.

The catalog is read from the Esri multidimensional endpoint
(``{url}/multiDimensionalInfo?f=json``), whose payload lists, per variable,
the values of its ``StdTime`` dimension in epoch milliseconds::

    {"multidimensionalInfo": {"variables": [
        {"name": "NO2_Troposphere",
         "dimensions": [{"name": "StdTime", "values": [1720000000000, ...]}]}
    ]}}

:class:`TimeCatalog` wraps the fetch in an observable lifecycle: ``loading``
flips around every refresh, ``steps`` holds the last good catalog and
``loaded`` fires after every successful refresh so dependents re-evaluate
even when the steps did not change.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Iterable

import numpy as np

from overlaysync.connectors.backends import api as api_backend
from overlaysync.errors import CatalogFetchError, ErrorSink, log_error_sink
from overlaysync.obs import log_catalog_fetch
from overlaysync.observable import Observable, Signal
from overlaysync.utils.iso8601 import to_epoch_ms

TIME_DIMENSION = "StdTime"

Fetcher = Callable[[str, str], Any]


def fetch_time_steps(
    url: str,
    variable: str,
    *,
    timeout: int = 60,
    max_retries: int = 3,
    retry_backoff: float = 0.5,
) -> Any:
    """Return the decoded multidimensional-info payload for ``url``.

    ``variable`` is not part of the request (the endpoint describes every
    variable of the service) but is carried on errors for context.
    """
    endpoint = url.rstrip("/") + "/multiDimensionalInfo"
    try:
        status, _headers, content = api_backend.request_with_retries(
            "GET",
            endpoint,
            params={"f": "json"},
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
        )
    except Exception as exc:
        raise CatalogFetchError(
            f"catalog request failed: {exc}", url=url, variable=variable
        ) from exc
    if status >= 400:
        raise CatalogFetchError(
            f"catalog endpoint returned HTTP {status}",
            url=url,
            variable=variable,
            status=status,
        )
    payload = api_backend.json_loads(content)
    if payload is None:
        raise CatalogFetchError(
            "catalog endpoint returned a non-JSON body", url=url, variable=variable
        )
    # Esri reports service-side failures as HTTP 200 with an error object
    err = api_backend.get_by_path(payload, "error.message")
    if err:
        raise CatalogFetchError(
            f"catalog endpoint error: {err}", url=url, variable=variable
        )
    return payload


def _raw_values(payload: Any, variable: str) -> Iterable[Any]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        raise CatalogFetchError(
            f"unexpected catalog payload type: {type(payload).__name__}",
            variable=variable,
        )
    if isinstance(payload.get("timeSteps"), list):
        return payload["timeSteps"]
    variables = api_backend.get_by_path(payload, "multidimensionalInfo.variables")
    if not isinstance(variables, list):
        raise CatalogFetchError(
            "catalog payload has no multidimensionalInfo.variables", variable=variable
        )
    for entry in variables:
        if not isinstance(entry, dict) or entry.get("name") != variable:
            continue
        for dim in entry.get("dimensions") or []:
            if isinstance(dim, dict) and dim.get("name") == TIME_DIMENSION:
                return dim.get("values") or []
        raise CatalogFetchError(
            f"variable {variable!r} has no {TIME_DIMENSION} dimension",
            variable=variable,
        )
    raise CatalogFetchError(
        f"variable {variable!r} not found in catalog", variable=variable
    )


def extract_time_steps(payload: Any, variable: str) -> tuple[int, ...]:
    """Return the ascending, de-duplicated time steps in ``payload``.

    Range-valued entries (``[start, end]``) contribute their start; values
    that cannot be read as a timestamp are skipped.
    """
    steps: list[int] = []
    for raw in _raw_values(payload, variable):
        if isinstance(raw, (list, tuple)):
            raw = raw[0] if raw else None
        ms = to_epoch_ms(raw)
        if ms is not None:
            steps.append(ms)
    if not steps:
        return ()
    return tuple(int(v) for v in np.unique(np.asarray(steps, dtype=np.int64)))


class TimeCatalog:
    """Observable, refreshable set of time steps for one (url, variable)."""

    def __init__(
        self,
        url: str,
        variable: str,
        *,
        fetcher: Fetcher | None = None,
        error_sink: ErrorSink | None = None,
    ) -> None:
        self.url = url
        self.variable = variable
        self._fetcher: Fetcher = fetcher or fetch_time_steps
        self._error_sink: ErrorSink = error_sink or log_error_sink
        self.steps: Observable[tuple[int, ...]] = Observable(())
        self.loading: Observable[bool] = Observable(False)
        self.loaded: Signal[tuple[int, ...]] = Signal()
        self._generation = 0

    def _begin(self, url: str | None, variable: str | None) -> tuple[int, str, str]:
        if url is not None:
            self.url = url
        if variable is not None:
            self.variable = variable
        self._generation += 1
        self.loading.set(True)
        return self._generation, self.url, self.variable

    def _load(self, url: str, variable: str) -> tuple[int, ...]:
        started = time.time()
        try:
            steps = extract_time_steps(self._fetcher(url, variable), variable)
        except CatalogFetchError as exc:
            exc.url = exc.url or url
            log_catalog_fetch(url, variable, None, started, error=str(exc))
            raise
        except Exception as exc:
            log_catalog_fetch(url, variable, None, started, error=str(exc))
            raise CatalogFetchError(
                f"catalog fetch failed: {exc}", url=url, variable=variable
            ) from exc
        log_catalog_fetch(url, variable, len(steps), started)
        return steps

    def _apply(self, generation: int, steps: tuple[int, ...]) -> bool:
        if generation != self._generation:
            # A newer refresh was issued while this one was in flight
            return False
        self.steps.set(steps)
        self.loaded.emit(steps)
        return True

    def _finish(self, generation: int) -> None:
        if generation == self._generation:
            self.loading.set(False)

    def refresh(
        self, url: str | None = None, variable: str | None = None
    ) -> tuple[int, ...] | None:
        """Fetch the catalog; return the new steps or ``None`` on failure.

        Failures leave ``steps`` untouched and are reported to the error sink.
        """
        generation, url, variable = self._begin(url, variable)
        try:
            steps = self._load(url, variable)
        except CatalogFetchError as exc:
            self._error_sink(exc)
            return None
        else:
            return steps if self._apply(generation, steps) else None
        finally:
            self._finish(generation)

    async def refresh_async(
        self, url: str | None = None, variable: str | None = None
    ) -> tuple[int, ...] | None:
        """Like :meth:`refresh` but runs the blocking fetch in a worker thread."""
        generation, url, variable = self._begin(url, variable)
        try:
            steps = await asyncio.to_thread(self._load, url, variable)
        except CatalogFetchError as exc:
            if generation == self._generation:
                self._error_sink(exc)
            return None
        else:
            return steps if self._apply(generation, steps) else None
        finally:
            self._finish(generation)

    def __len__(self) -> int:
        return len(self.steps.value)
