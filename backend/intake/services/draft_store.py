"""Versioned local draft store.

Keeps one in-progress draft per member identity: the unsubmitted form
state of the sections visited so far plus the current step. The schema
version is baked into the storage key and embedded in the record; a
version mismatch makes the draft unreadable by construction, and bumping
DRAFT_SCHEMA_VERSION is the only migration strategy.

Loading never raises and never partially applies a draft. Saving is
best-effort: a failing backend is logged and ignored so the flow stays
usable without local persistence.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from intake.core.config import settings
from intake.core.errors import DraftCorruptionError
from intake.flow.forms import FORM_MODELS
from intake.flow.state import SectionKey
from intake.schemas.member import Member

logger = logging.getLogger(__name__)

DRAFT_SCHEMA_VERSION = 2


def draft_identity(member: Member) -> str:
    """Stable identity for a member's draft: id, else email, else "me"."""
    return member.id or member.email or "me"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Draft:
    """A snapshot of in-progress intake state.

    Attributes:
        version: Schema version the draft was written with.
        current_step: Step the member was on.
        forms: Unsubmitted form payloads keyed by section.
        updated_at: Write time in epoch milliseconds.
    """

    version: int
    current_step: SectionKey
    forms: dict[SectionKey, dict[str, Any]] = field(default_factory=dict)
    updated_at: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "current_step": self.current_step.value,
            "forms": {key.value: payload for key, payload in self.forms.items()},
        }


def parse_draft(raw: str, version: int) -> Draft:
    """Parse a stored draft record.

    Args:
        raw: Stored JSON text.
        version: Schema version the caller expects.

    Returns:
        The parsed Draft.

    Raises:
        DraftCorruptionError: If the record is malformed or has another version.
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DraftCorruptionError("Draft is not valid JSON") from exc

    if not isinstance(data, dict):
        raise DraftCorruptionError("Draft is not an object")
    if data.get("version") != version:
        raise DraftCorruptionError(
            f"Draft version {data.get('version')!r} does not match {version}"
        )

    current_step = SectionKey.parse(data.get("current_step"))
    if current_step is None:
        raise DraftCorruptionError("Draft has no valid current step")

    updated_at = data.get("updated_at")
    if not isinstance(updated_at, int) or isinstance(updated_at, bool):
        raise DraftCorruptionError("Draft has no valid timestamp")

    raw_forms = data.get("forms", {})
    if not isinstance(raw_forms, dict):
        raise DraftCorruptionError("Draft forms are not an object")
    forms: dict[SectionKey, dict[str, Any]] = {}
    for raw_key, payload in raw_forms.items():
        key = SectionKey.parse(raw_key)
        if key not in FORM_MODELS or not isinstance(payload, dict):
            raise DraftCorruptionError(f"Draft has an invalid form for {raw_key!r}")
        forms[key] = payload

    return Draft(
        version=version,
        current_step=current_step,
        forms=forms,
        updated_at=updated_at,
    )


# =============================================================================
# Backends
# =============================================================================


class DraftBackend(Protocol):
    """Key/value storage for serialized drafts."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryDraftBackend:
    """Process-local draft storage."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._items.get(key)

    def write(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class FileDraftBackend:
    """One JSON file per draft key inside a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# =============================================================================
# Store
# =============================================================================


class DraftStore:
    """Namespaced, versioned draft persistence."""

    def __init__(
        self,
        backend: DraftBackend | None = None,
        *,
        namespace: str | None = None,
        version: int = DRAFT_SCHEMA_VERSION,
    ) -> None:
        """Initialize the store.

        Args:
            backend: Storage backend. Defaults to in-memory.
            namespace: Key prefix. Defaults to settings.draft_namespace.
            version: Schema version for keys and records.
        """
        self.backend = backend if backend is not None else MemoryDraftBackend()
        self.namespace = namespace or settings.draft_namespace
        self.version = version

    def key(self, identity: str) -> str:
        """Storage key for an identity, with the schema version embedded."""
        return f"{self.namespace}:onboarding:draft:v{self.version}:{identity}"

    def new_draft(
        self,
        current_step: SectionKey,
        forms: dict[SectionKey, dict[str, Any]],
    ) -> Draft:
        """Build a draft stamped with this store's version and the current time."""
        return Draft(version=self.version, current_step=current_step, forms=forms)

    def load(self, identity: str) -> Draft | None:
        """Read the identity's draft.

        Returns:
            The Draft, or None when absent, unreadable, malformed or from
            another schema version.
        """
        key = self.key(identity)
        try:
            raw = self.backend.read(key)
        except (OSError, ValueError):
            logger.warning("Draft storage unreadable for %s", key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return parse_draft(raw, self.version)
        except DraftCorruptionError as exc:
            logger.info("Discarding draft %s: %s", key, exc.message)
            return None

    def save(self, identity: str, draft: Draft) -> None:
        """Overwrite the identity's draft; failures are logged and ignored."""
        key = self.key(identity)
        try:
            self.backend.write(key, json.dumps(draft.to_dict()))
        except (OSError, TypeError, ValueError):
            logger.warning("Draft save failed for %s", key, exc_info=True)

    def clear(self, identity: str) -> None:
        """Delete the identity's draft; failures are logged and ignored."""
        key = self.key(identity)
        try:
            self.backend.delete(key)
        except OSError:
            logger.warning("Draft clear failed for %s", key, exc_info=True)


# Singleton instance for the application
_draft_store: DraftStore | None = None


def get_draft_store() -> DraftStore:
    """Get the singleton draft store.

    Drafts go to settings.draft_storage_dir when set, else stay in memory.
    """
    global _draft_store
    if _draft_store is None:
        backend: DraftBackend
        if settings.draft_storage_dir is not None:
            backend = FileDraftBackend(settings.draft_storage_dir)
        else:
            backend = MemoryDraftBackend()
        _draft_store = DraftStore(backend)
    return _draft_store


def reset_draft_store() -> None:
    """Reset the draft store singleton (for testing)."""
    global _draft_store
    _draft_store = None
