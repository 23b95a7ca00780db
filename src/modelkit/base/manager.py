from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from ..cache import CacheManager, create_cache_manager
from ..exceptions import InstanceNotFoundError, InstanceValidationError
from ..filter import FilterCondition, FilterUtils

if TYPE_CHECKING:
    from .model import ModelInstance, ModelSpec

logger = logging.getLogger("modelkit.manager")

Record = dict[str, Any]


class ModelQueryMode(StrEnum):
    CACHE = "cache"
    REMOTE = "remote"


class ModelManager:
    """CRUD access to the instances of one model.

    Records are kept as plain value dicts in a cache collaborator, all of
    them under the model's name and keyed by primary key. Only the values
    callers actually gave are stored; defaults are re-resolved whenever a
    record is turned back into an instance.
    """

    def __init__(
        self,
        model: ModelSpec,
        cache: CacheManager[dict[str, Record]] | None = None,
        mode: ModelQueryMode | str = ModelQueryMode.CACHE,
    ) -> None:
        self.model = model
        self.mode = ModelQueryMode(mode)
        self._cache = cache

    @property
    def cache(self) -> CacheManager[dict[str, Record]]:
        if self._cache is None:
            self._cache = create_cache_manager()
        return self._cache

    @property
    def key(self) -> str:
        return self.model.name or ""

    @property
    def primary_key(self) -> str:
        return self.model.meta.get("primary_key", "id")

    # Queries

    async def all(self) -> list[ModelInstance]:
        records = await self._load()
        return [self.model(values) for values in records.values()]

    async def filter(self, *conditions: FilterCondition) -> list[ModelInstance]:
        """Instances whose stored values pass every condition."""
        records = await self._load()
        return [self.model(values) for values in FilterUtils.multi_filter(records.values(), conditions)]

    async def get(self, pk: Any) -> ModelInstance:
        """Fetch one instance.

        Raises:
            InstanceNotFoundError: If nothing is stored under ``pk``.
        """
        records = await self._load()
        values = records.get(str(pk))
        if values is None:
            raise InstanceNotFoundError(self.key, pk)
        return self.model(values)

    # Mutations

    async def create(self, values: Mapping[str, Any], commit: bool = True) -> ModelInstance:
        """Validate and store a new instance, generating its primary key if absent.

        Raises:
            InstanceValidationError: If the values fail model validation.
        """
        record = self._record(values)
        if record.get(self.primary_key) is None:
            record[self.primary_key] = uuid4().hex
        instance = await self._validated(record)

        self.model.events.before_create.emit(instance)
        if commit:
            records = await self._load()
            records[str(instance.pk)] = record
            await self._store(records)
        self.model.events.after_create.emit(instance)
        logger.debug(f"Created {self.key} {instance.pk!r} (commit={commit})")
        return instance

    async def update(self, pk: Any, values: Mapping[str, Any], commit: bool = True) -> ModelInstance:
        """Merge ``values`` over the stored record and store the result.

        Raises:
            InstanceNotFoundError: If nothing is stored under ``pk``.
            InstanceValidationError: If the merged values fail model validation.
        """
        records = await self._load()
        existing = records.get(str(pk))
        if existing is None:
            raise InstanceNotFoundError(self.key, pk)

        record = {**existing, **self._record(values), self.primary_key: existing.get(self.primary_key, pk)}
        instance = await self._validated(record)

        self.model.events.before_update.emit(instance)
        if commit:
            records[str(pk)] = record
            await self._store(records)
        self.model.events.after_update.emit(instance)
        logger.debug(f"Updated {self.key} {pk!r} (commit={commit})")
        return instance

    async def delete(self, pk: Any, commit: bool = True) -> None:
        """Remove a stored instance.

        Raises:
            InstanceNotFoundError: If nothing is stored under ``pk``.
        """
        records = await self._load()
        existing = records.get(str(pk))
        if existing is None:
            raise InstanceNotFoundError(self.key, pk)

        instance = self.model(existing)
        self.model.events.before_delete.emit(instance)
        if commit:
            del records[str(pk)]
            await self._store(records)
        self.model.events.after_delete.emit(instance)
        logger.debug(f"Deleted {self.key} {pk!r} (commit={commit})")

    async def save(self, instance: ModelInstance, commit: bool = True) -> ModelInstance:
        """Create or update from a bound instance, depending on whether its key is stored."""
        values = instance.raw_values()
        pk = values.get(self.primary_key)
        if pk is not None and str(pk) in await self._load():
            return await self.update(pk, values, commit=commit)
        return await self.create(values, commit=commit)

    # Storage

    def _record(self, values: Mapping[str, Any]) -> Record:
        return {name: value for name, value in values.items() if name in self.model.fields}

    async def _validated(self, record: Record) -> ModelInstance:
        instance = self.model(record)
        if not await instance.validate():
            raise InstanceValidationError(self.key, record)
        return instance

    async def _load(self) -> dict[str, Record]:
        if self.mode is ModelQueryMode.REMOTE:
            raise NotImplementedError("Remote queries are not supported, use ModelQueryMode.CACHE")
        return dict(await self.cache.get(self.key) or {})

    async def _store(self, records: dict[str, Record]) -> None:
        await self.cache.set(self.key, records)

    def __repr__(self) -> str:
        return f"ModelManager({self.key!r}, mode={self.mode.value!r})"
