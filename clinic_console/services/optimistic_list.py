# clinic_console/services/optimistic_list.py
"""
Paginated list screen with optimistic mutations.

The list mirrors one page of server data. Mutations patch local state first,
then call the backend; a failure puts the list back the way it was and
raises one error toast. There is no retry and no de-duplication: two edits of
the same row in flight at once can leave the page out of step with the server
until the next refresh.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import (Any, Callable, Generic, Iterable, List, Mapping, Optional,
                    Protocol, Set, Type, TypeVar, Union)

from pydantic import BaseModel

from clinic_console.core.config import settings
from clinic_console.core.errors import ClinicConsoleError
from clinic_console.schemas.common import ListResult, RecordId
from clinic_console.services.list_filters import SortConfig, apply_local_view, next_sort
from clinic_console.services.notifications import Notifier, error_message
from clinic_console.services.pagination import PageWindow

logger = logging.getLogger(__name__)

T = TypeVar("T")
Payload = Union[BaseModel, Mapping[str, Any]]

TEMP_ID_PREFIX = "temp-"


class ListSource(Protocol):
    def list(self, **params: Any) -> ListResult: ...

    def create(self, payload: Any) -> Any: ...

    def update(self, record_id: RecordId, changes: Any) -> Any: ...

    def delete(self, record_id: RecordId) -> Any: ...


def record_id(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("id")
    return getattr(record, "id", None)


def is_temporary(record: Any) -> bool:
    rid = record_id(record)
    return isinstance(rid, str) and rid.startswith(TEMP_ID_PREFIX)


def as_dict(data: Payload) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class OptimisticList(Generic[T]):
    def __init__(
        self,
        source: ListSource,
        *,
        filters: Any,
        label: str,
        plural: str,
        model: Optional[Type[BaseModel]] = None,
        notifier: Optional[Notifier] = None,
        items_per_page: Optional[int] = None,
    ) -> None:
        self.source = source
        self.filters = filters
        self.label = label
        self.plural = plural
        self.model = model
        self.notifier = notifier or Notifier()

        self.items: List[T] = []
        self.total: int = 0
        self.current_page: int = 1
        self.items_per_page: int = items_per_page or settings.ITEMS_PER_PAGE
        self.sort: Optional[SortConfig] = None
        self.selected: Set[Any] = set()
        self.is_loading: bool = False

        self._generation = 0
        self._listeners: List[Callable[["OptimisticList[T]"], None]] = []

    # -------------------------------
    # observation
    # -------------------------------
    def subscribe(self, listener: Callable[["OptimisticList[T]"], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    @property
    def window(self) -> PageWindow:
        return PageWindow(self.current_page, self.items_per_page, self.total)

    def visible_items(self) -> List[T]:
        """Current page after the client-side filters and sort column."""
        return apply_local_view(self.items, self.filters, self.sort)

    def find(self, rid: RecordId) -> Optional[T]:
        for r in self.items:
            if record_id(r) == rid:
                return r
        return None

    # -------------------------------
    # read path
    # -------------------------------
    def query_params(self) -> dict:
        params = dict(self.filters.to_params())
        params["page"] = self.current_page
        params["per_page"] = self.items_per_page
        return params

    def refresh(self) -> bool:
        self._generation += 1
        generation = self._generation
        self.is_loading = True
        self._changed()
        result = None
        try:
            result = self.source.list(**self.query_params())
        except ClinicConsoleError as e:
            logger.warning("Listing %s failed: %s", self.plural, e)
            if generation == self._generation:
                self.notifier.error(f"Failed to fetch {self.plural}.")
        finally:
            if generation == self._generation:
                self.is_loading = False

        if generation != self._generation:
            # a newer refresh has started; this page is stale
            logger.debug("Dropping stale %s page", self.plural)
            return False
        if result is None:
            self._changed()
            return False

        self.items = list(result.items)
        self.total = int(result.total)
        self._changed()
        return True

    def set_filters(self, **changes: Any) -> bool:
        self.filters = replace(self.filters, **changes)
        self.current_page = 1
        return self.refresh()

    def reset_filters(self) -> bool:
        self.filters = self.filters.reset()
        self.current_page = 1
        return self.refresh()

    def set_page(self, page: int) -> bool:
        self.current_page = max(int(page), 1)
        return self.refresh()

    def set_items_per_page(self, per_page: int) -> bool:
        if per_page < 1:
            raise ValueError("per_page must be >= 1")
        self.items_per_page = per_page
        self.current_page = 1
        return self.refresh()

    def sort_by(self, key: str) -> SortConfig:
        self.sort = next_sort(self.sort, key)
        self._changed()
        return self.sort

    # -------------------------------
    # mutations
    # -------------------------------
    def _optimistic_record(self, payload: Payload, rid: Any) -> Any:
        data = as_dict(payload)
        data["id"] = rid
        if self.model is not None:
            return self.model.model_construct(**data)
        return data

    def _merged(self, current: Any, changes: Payload) -> Any:
        data = as_dict(changes)
        if isinstance(current, BaseModel):
            return current.model_copy(update=data)
        if isinstance(current, Mapping):
            return {**current, **data}
        return current

    def create(self, payload: Payload) -> Optional[T]:
        temp_id = f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"
        self.items = [self._optimistic_record(payload, temp_id)] + self.items
        self.total += 1
        self._changed()

        try:
            saved = self.source.create(payload)
        except Exception as e:
            self.items = [r for r in self.items if record_id(r) != temp_id]
            self.total -= 1
            self._changed()
            if not isinstance(e, ClinicConsoleError):
                raise
            logger.warning("Create %s failed: %s", self.label, e)
            self.notifier.error(error_message(e, f"Failed to create {self.label}."))
            return None

        self.items = [saved if record_id(r) == temp_id else r for r in self.items]
        self._changed()
        self.notifier.success(f"{self.label.capitalize()} created successfully!")
        return saved

    def update(self, rid: RecordId, changes: Payload) -> Optional[T]:
        snapshot = list(self.items)
        current = self.find(rid)
        if current is not None:
            optimistic = self._merged(current, changes)
            self.items = [optimistic if record_id(r) == rid else r for r in self.items]
            self._changed()

        try:
            saved = self.source.update(rid, changes)
        except Exception as e:
            self.items = snapshot
            self._changed()
            if not isinstance(e, ClinicConsoleError):
                raise
            logger.warning("Update %s %s failed: %s", self.label, rid, e)
            self.notifier.error(error_message(e, f"Failed to update {self.label}."))
            return None

        self.items = [saved if record_id(r) == rid else r for r in self.items]
        self._changed()
        self.notifier.success(f"{self.label.capitalize()} updated successfully!")
        return saved

    def delete(self, rid: RecordId) -> bool:
        return self._delete([rid], bulk=False)

    def delete_many(self, ids: Optional[Iterable[RecordId]] = None) -> bool:
        ids = list(self.selected if ids is None else ids)
        if not ids:
            return False
        return self._delete(ids, bulk=True)

    def _delete(self, ids: List[Any], *, bulk: bool) -> bool:
        snapshot, snapshot_total = list(self.items), self.total
        doomed = set(ids)
        self.items = [r for r in self.items if record_id(r) not in doomed]
        self.total -= len(snapshot) - len(self.items)
        self._changed()

        try:
            for rid in ids:
                self.source.delete(rid)
        except Exception as e:
            self.items, self.total = snapshot, snapshot_total
            self._changed()
            if not isinstance(e, ClinicConsoleError):
                raise
            logger.warning("Delete %s %s failed: %s", self.label, ids, e)
            fallback = (f"Failed to delete selected {self.plural}."
                        if bulk else f"Failed to delete {self.label}.")
            self.notifier.error(error_message(e, fallback))
            return False

        self.selected -= doomed
        self._changed()
        if bulk:
            self.notifier.success(f"{len(ids)} {self.plural} deleted successfully!")
        else:
            self.notifier.success(f"{self.label.capitalize()} deleted successfully!")
        return True

    # -------------------------------
    # selection
    # -------------------------------
    def toggle_selection(self, rid: RecordId) -> None:
        if rid in self.selected:
            self.selected.discard(rid)
        else:
            self.selected.add(rid)
        self._changed()

    def select_all(self) -> None:
        ids = {record_id(r) for r in self.items}
        self.selected = set() if self.selected == ids else ids
        self._changed()

    def clear_selection(self) -> None:
        self.selected = set()
        self._changed()
