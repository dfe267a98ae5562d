"""List controller - cache paint, fetch, search, paging, forms and confirmed mutations.

One instance backs one entity page. It is driven by the presentation layer
(the CLI here) and owns no rendering: callers read ``view``, ``table()``,
``form`` and ``notices``.

Usage:
    async with AdminClient() as api:
        controller = ListController(get_adapter("cities"), api, cache, session)
        await controller.mount()
        controller.search = "par"
        headers, rows = controller.table()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, TYPE_CHECKING

from .cache import CacheStore
from .cascade import DependentFieldCascade
from .config import settings
from .entities import EntityAdapter
from .errors import FetchError, InvalidTransition, UnsupportedOperation, ValidationError
from .exporting import rows_to_csv, rows_to_pdf
from .fetcher import CollectionFetcher, FetchResult
from .fields import DropdownField, parse_definitions
from .filtering import filter_records, page_count, paginate
from .mutations import IntentKind, MutationOutcome, StagedMutationController
from .refs import index_by_id
from .session import SessionContext

if TYPE_CHECKING:
    from .api.client import AdminClient

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data found."
CUSTOM_PREFIX = "custom."


class ViewState(Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    GRID = "grid"


@dataclass
class FormState:
    open: bool = False
    editing_id: str | None = None
    values: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class Notice:
    level: str  # "success" | "error"
    message: str


class ListController:
    def __init__(
        self,
        adapter: EntityAdapter,
        client: "AdminClient",
        cache: CacheStore | None,
        session: SessionContext,
        fetcher: CollectionFetcher | None = None,
        page_size: int | None = None,
    ):
        self.adapter = adapter
        self._client = client
        self._cache = cache
        self.session = session
        self._fetcher = fetcher or CollectionFetcher(client, cache)
        self.page_size = page_size or settings.page_size

        self.records: list[dict[str, Any]] = []
        self.collections: dict[str, list[dict[str, Any]]] = {}
        self.reference_errors: dict[str, FetchError] = {}
        self.loading = False
        self.painted = False
        self.fetch_error: FetchError | None = None
        self.redirect_to_login = False
        self.mounted = False
        self.search = ""

        self.form = FormState()
        self.notices: list[Notice] = []
        self.mutations = StagedMutationController(
            client.resource(adapter.key), adapter.label, refresh=self.refresh
        )
        self.cascades = {
            spec.parent: DependentFieldCascade.from_spec(spec, self._fetcher) for spec in adapter.cascades
        }
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> None:
        """Gate on the session, paint the cached snapshot, then reconcile."""
        self._generation += 1
        generation = self._generation
        self.mounted = True
        if not self.session.is_authorized:
            self.redirect_to_login = True
            return

        cached = self._fetcher.cached(self.adapter.key)
        if cached is not None:
            self.records = cached
            self.painted = True
        for name in self.adapter.auxiliaries:
            snapshot = self._fetcher.cached(name)
            if snapshot is not None:
                self.collections[name] = snapshot

        self.loading = not self.painted
        self.fetch_error = None
        primary, references = await asyncio.gather(
            self._fetcher.fetch_collection(self.adapter.key, store=True),
            self._fetcher.fetch_many(self.adapter.auxiliaries),
        )
        if not self._current(generation):
            logger.debug("Dropping %s results that arrived after unmount", self.adapter.key)
            return
        self.loading = False
        self._apply_primary(primary)
        self._apply_references(references)
        await self._ensure_dropdown_sources(generation)

    def unmount(self) -> None:
        self.mounted = False
        self._generation += 1

    def _current(self, generation: int) -> bool:
        return self.mounted and generation == self._generation

    def _apply_primary(self, result: FetchResult) -> None:
        if result.ok:
            self.records = result.records
            self.fetch_error = None
        else:
            self.fetch_error = result.error

    def _apply_references(self, results: Mapping[str, FetchResult]) -> None:
        for name, result in results.items():
            if result.ok:
                self.collections[name] = result.records
                self.reference_errors.pop(name, None)
            else:
                self.reference_errors[name] = result.error

    async def _ensure_dropdown_sources(self, generation: int) -> None:
        """Load collections that custom dropdown fields draw their options from."""
        definitions = parse_definitions(self.collections.get("seo-custom-fields"))
        missing = [
            d.source
            for d in definitions
            if isinstance(d, DropdownField) and d.source and d.source not in self.collections
        ]
        if not missing:
            return
        results = await self._fetcher.fetch_many(missing)
        if self._current(generation):
            self._apply_references(results)

    async def refresh(self) -> None:
        """Refetch the primary collection, replacing it wholesale."""
        generation = self._generation
        result = await self._fetcher.fetch_collection(self.adapter.key, store=True)
        if self._current(generation):
            self._apply_primary(result)

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------

    @property
    def lookups(self) -> dict[str, dict[str, Mapping[str, Any]]]:
        lookups = {name: index_by_id(records) for name, records in self.collections.items()}
        lookups.setdefault(self.adapter.key, index_by_id(self.records))
        return lookups

    @property
    def rows(self) -> list[dict[str, Any]]:
        """Records matching the current search."""
        lookups = self.lookups
        getters = [lambda record, get=get: get(record, lookups) for get in self.adapter.search_fields]
        return filter_records(self.records, self.search, getters)

    @property
    def page_count(self) -> int:
        return page_count(len(self.rows), self.page_size)

    def page(self, number: int) -> list[dict[str, Any]]:
        return paginate(self.rows, number, self.page_size)

    @property
    def view(self) -> ViewState:
        if self.loading:
            return ViewState.LOADING
        if self.fetch_error is not None and not self.records:
            return ViewState.ERROR
        if not self.rows:
            return ViewState.EMPTY
        return ViewState.GRID

    def table(self, records: list[dict[str, Any]] | None = None) -> tuple[list[str], list[list[str]]]:
        """Column headers and display rows (defaults to the filtered set)."""
        lookups = self.lookups
        records = self.rows if records is None else records
        headers = [column.header for column in self.adapter.columns]
        return headers, [self.adapter.display_row(record, lookups) for record in records]

    def options_for(self, name: str) -> list[dict[str, Any]]:
        """Choices for a reference field of the form."""
        for cascade in self.cascades.values():
            if cascade.child_field == name:
                return cascade.options
        entity = self.adapter.ref_fields.get(name)
        return self.collections.get(entity, []) if entity else []

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def _require(self, allowed: bool, action: str) -> None:
        if not allowed:
            raise UnsupportedOperation(f"Cannot {action} {self.adapter.plural}")

    def _open_form(self, values: dict[str, Any], editing_id: str | None) -> None:
        if self.mutations.intent is not None:
            self.mutations.cancel()
        self.form = FormState(open=True, editing_id=editing_id, values=values)

    def add_requested(self) -> None:
        self._require(self.adapter.can_create, "add")
        for cascade in self.cascades.values():
            cascade.reset()
        self._open_form(self.adapter.blank_form(), None)

    async def edit_requested(self, record: Mapping[str, Any]) -> None:
        """Open the form pre-filled from ``record`` and load dependent options."""
        self._require(self.adapter.can_update, "edit")
        self._open_form(self.adapter.form_for(record), record.get("id"))
        for parent, cascade in self.cascades.items():
            await cascade.load_options(self.form.values.get(parent))

    def delete_requested(self, record_id: str) -> str:
        """Stage a delete and return the confirmation prompt."""
        self._require(self.adapter.can_delete, "delete")
        self.mutations.stage_delete(record_id)
        return self.mutations.request_confirmation()

    async def set_field(self, name: str, value: Any) -> None:
        if not self.form.open:
            raise InvalidTransition("No form is open")
        values = self.form.values
        if name.startswith(CUSTOM_PREFIX):
            values.setdefault("custom", {})[name[len(CUSTOM_PREFIX):]] = value
        elif name in self.cascades:
            error = await self.cascades[name].on_parent_change(values, value)
            if error is not None:
                self.form.error = error.message
        else:
            values[name] = value

    def close_form(self) -> None:
        if self.mutations.intent is not None:
            self.mutations.cancel()
        self.form = FormState()

    def submit(self) -> str | None:
        """Validate the open form, then stage it. Returns the confirmation prompt."""
        if not self.form.open:
            raise InvalidTransition("No form is open")
        error = self.adapter.check(self.form.values, self.collections)
        if error:
            self.form.error = error
            return None
        self.form.error = None
        payload = self.adapter.payload(self.form.values)
        if self.form.editing_id:
            self.mutations.stage_update(self.form.editing_id, payload)
        else:
            self.mutations.stage_create(payload)
        return self.mutations.request_confirmation()

    async def confirm(self) -> MutationOutcome:
        outcome = await self.mutations.confirm()
        if outcome.ok:
            self.notices.append(Notice("success", outcome.message))
            if outcome.intent.kind is not IntentKind.DELETE:
                self.form = FormState()
        elif outcome.intent.kind is IntentKind.DELETE:
            message = outcome.message
            if not isinstance(outcome.error, ValidationError):
                message = f"Failed to delete {self.adapter.label}."
            self.notices.append(Notice("error", message))
        else:
            self.form.error = outcome.message
        return outcome

    def cancel(self) -> None:
        """Dismiss the confirmation; an open form stays open."""
        self.mutations.cancel()

    @property
    def last_notice(self) -> Notice | None:
        return self.notices[-1] if self.notices else None

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_filename(self, extension: str) -> str:
        return f"{self.adapter.key}.{extension}"

    def _target(self, path: Path | str | None, extension: str) -> Path | None:
        if path is None:
            return None
        target = Path(path)
        if target.is_dir():
            target = target / self.export_filename(extension)
        return target

    def export_csv(self, path: Path | str | None = None) -> str:
        headers, rows = self.table()
        content = rows_to_csv(headers, rows)
        target = self._target(path, "csv")
        if target is not None:
            target.write_text(content, encoding="utf-8", newline="")
        return content

    def export_pdf(self, path: Path | str | None = None) -> bytes:
        headers, rows = self.table()
        content = rows_to_pdf(self.adapter.title, headers, rows)
        target = self._target(path, "pdf")
        if target is not None:
            target.write_bytes(content)
        return content
