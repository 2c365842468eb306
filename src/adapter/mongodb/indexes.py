"""Declarative MongoDB index sync.

Repositories declare the indexes they rely on as IndexSpec values and
sync_indexes brings the live collection in line with them at startup.
An existing index that shares a spec's name or key pattern but differs in
options (a plain email index from before uniqueness was enforced, say)
is dropped and rebuilt, since create_index refuses to change it in place.
"""

from dataclasses import dataclass
from logging import getLogger

logger = getLogger(__name__)


@dataclass(frozen=True)
class IndexSpec:
    name: str
    keys: tuple
    unique: bool = False
    partial_filter: dict | None = None

    def create_kwargs(self) -> dict:
        kwargs = {'name': self.name}
        if self.unique:
            kwargs['unique'] = True
        if self.partial_filter is not None:
            kwargs['partialFilterExpression'] = self.partial_filter
        return kwargs

    def same_keys(self, info: dict) -> bool:
        return [tuple(k) for k in info.get('key', [])] == [tuple(k) for k in self.keys]

    def matches(self, info: dict) -> bool:
        """True if an index_information() entry already satisfies this spec."""
        return (
            self.same_keys(info)
            and bool(info.get('unique', False)) == self.unique
            and info.get('partialFilterExpression') == self.partial_filter
        )


def sync_indexes(collection, specs) -> list[str]:
    """Create every spec'd index, dropping stale ones in the way.

    Returns the names of dropped indexes. PyMongoError propagates.
    """
    existing = dict(collection.index_information())
    dropped = []

    for spec in specs:
        for name, info in list(existing.items()):
            if name == '_id_':
                continue
            if name != spec.name and not spec.same_keys(info):
                continue
            if name == spec.name and spec.matches(info):
                continue
            logger.warning("Dropping stale index", extra={
                "collection": collection.name, "index": name, "replacement": spec.name,
            })
            collection.drop_index(name)
            dropped.append(name)
            del existing[name]

        collection.create_index(list(spec.keys), **spec.create_kwargs())

    return dropped


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup."""
    from adapter.mongodb.user_repository import MongoUserRepository

    results = [
        MongoUserRepository(db).ensure_indexes(),
    ]
    return all(results)
