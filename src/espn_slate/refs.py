"""Deferred-resource references and their resolution.

Upstream objects carry ``{"$ref": url}`` in place of values that live behind
another request. A field is either still a pointer (``Unresolved``) or a
concrete value (``Resolved``); resolution is the only transition between the
two and it only ever moves forward.

Resolution is split in two so fan-out code can fetch without touching shared
state: ``fetch_patch`` does the network call and returns a ``RefPatch``,
``apply_patch`` merges that patch into the holder on the caller's thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from espn_slate.endpoints import secure_url
from espn_slate.errors import ResolutionError, StructuralError
from espn_slate.fetcher import ResourceFetcher

logger = logging.getLogger(__name__)

REF_KEY = "$ref"

T = TypeVar("T")

Holder = MutableMapping[str, Any] | MutableSequence[Any]
Field = str | int


@dataclass(frozen=True)
class Unresolved:
    """A field still pointing at a resource that has not been fetched."""

    url: str


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """A field holding its concrete value."""

    value: T


@dataclass(frozen=True)
class RefPatch:
    """Result of fetching one reference, ready to merge into its holder."""

    field: Field
    url: str
    value: Any
    merge: bool


def ref_url(value: Any) -> str | None:
    """Return the pointer URL of a reference object, else None."""
    if not isinstance(value, dict):
        return None
    raw = value.get(REF_KEY)
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def classify(
    value: Any,
    *,
    is_concrete: Callable[[dict[str, Any]], bool] | None = None,
) -> Unresolved | Resolved[Any] | None:
    """Tag a field value; None means the field is absent."""
    if value is None:
        return None
    url = ref_url(value)
    if url is None:
        return Resolved(value)
    if is_concrete is not None and is_concrete(value):
        return Resolved(value)
    return Unresolved(url)


def _read(holder: Holder, field: Field) -> Any:
    if isinstance(holder, MutableMapping):
        return holder.get(field)
    if isinstance(field, int) and -len(holder) <= field < len(holder):
        return holder[field]
    return None


class ReferenceResolver:
    """Resolve ``$ref`` fields through a ``ResourceFetcher``."""

    def __init__(self, fetcher: ResourceFetcher) -> None:
        self.fetcher = fetcher

    def fetch_patch(
        self,
        holder: Holder,
        field: Field,
        *,
        is_concrete: Callable[[dict[str, Any]], bool] | None = None,
        project: Callable[[Any], Any] | None = None,
    ) -> RefPatch | None:
        """Fetch the reference at ``holder[field]`` without mutating anything.

        Returns None when there is nothing to resolve (absent or concrete), or
        when ``project`` finds nothing usable in the fetched body. Fetch
        failures raise ``ResolutionError``.
        """
        state = classify(_read(holder, field), is_concrete=is_concrete)
        if not isinstance(state, Unresolved):
            return None
        url = secure_url(state.url)
        body = self.fetcher.fetch_json(url, retry=False)
        if project is not None:
            value = project(body)
            if value is None:
                return None
            return RefPatch(field=field, url=url, value=value, merge=False)
        if not isinstance(body, dict):
            raise StructuralError(f"expected an object body from {url}")
        return RefPatch(field=field, url=url, value=body, merge=True)

    @staticmethod
    def apply_patch(holder: Holder, patch: RefPatch) -> None:
        """Merge a fetched value: shallow for objects, replacement otherwise."""
        current = _read(holder, patch.field)
        if patch.merge and isinstance(current, dict) and isinstance(patch.value, dict):
            holder[patch.field] = {**current, **patch.value}
        else:
            holder[patch.field] = patch.value

    def resolve(
        self,
        holder: Holder,
        field: Field,
        *,
        is_concrete: Callable[[dict[str, Any]], bool] | None = None,
        project: Callable[[Any], Any] | None = None,
    ) -> bool:
        """Resolve in place; failures are logged and leave the holder untouched."""
        try:
            patch = self.fetch_patch(holder, field, is_concrete=is_concrete, project=project)
        except ResolutionError as exc:
            logger.warning("reference resolution failed for field %r: %s", field, exc)
            return False
        if patch is None:
            return False
        self.apply_patch(holder, patch)
        return True
