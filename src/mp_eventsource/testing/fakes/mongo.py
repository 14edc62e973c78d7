"""Testing fakes – in-memory motor collection, cursor and client session.

Covers the slice of the motor API the event repositories use, with real
MongoDB semantics where tests depend on them:

* ``_id`` and unique-index violations raise ``DuplicateKeyError``
  (``BulkWriteError`` inside ``insert_many`` / ``bulk_write``);
* ordered bulk writes stop at the first failing operation and keep the
  writes made before it;
* writes issued with a :class:`FakeClientSession` inside a transaction are
  undone by ``abort_transaction``.

Queries support equality (including dotted paths and array membership) and
the ``$eq $ne $in $nin $gt $gte $lt $lte $exists $and $or`` operators.
"""
from __future__ import annotations

import copy
import dataclasses
import operator
from collections.abc import Mapping, Sequence
from typing import Any, Callable

from bson import ObjectId
from pymongo import InsertOne, UpdateOne
from pymongo.errors import BulkWriteError, DuplicateKeyError, InvalidOperation

_MISSING = object()


# ---------------------------------------------------------------------------
# Query evaluation
# ---------------------------------------------------------------------------


def _resolve(doc: Mapping[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _compare(cmp: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, arg: Any) -> bool:
        if value is _MISSING or value is None:
            return False
        try:
            return cmp(value, arg)
        except TypeError:
            return False

    return check


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": _equals,
    "$ne": lambda value, arg: not _equals(value, arg),
    "$in": lambda value, arg: any(_equals(value, a) for a in arg),
    "$nin": lambda value, arg: not any(_equals(value, a) for a in arg),
    "$gt": _compare(operator.gt),
    "$gte": _compare(operator.ge),
    "$lt": _compare(operator.lt),
    "$lte": _compare(operator.le),
    "$exists": lambda value, arg: (value is not _MISSING) == bool(arg),
}


def matches(doc: Mapping[str, Any], query: Mapping[str, Any] | None) -> bool:
    """Return whether *doc* satisfies the MongoDB filter *query*."""
    for key, condition in (query or {}).items():
        if key == "$and":
            if not all(matches(doc, q) for q in condition):
                return False
            continue
        if key == "$or":
            if not any(matches(doc, q) for q in condition):
                return False
            continue
        value = _resolve(doc, key)
        if isinstance(condition, Mapping) and condition and all(k.startswith("$") for k in condition):
            for op, arg in condition.items():
                if op not in _OPERATORS:
                    raise NotImplementedError(f"Unsupported query operator {op!r}")
                if not _OPERATORS[op](value, arg):
                    return False
        elif not _equals(value, condition):
            return False
    return True


def _project(doc: dict[str, Any], projection: Mapping[str, Any] | None) -> dict[str, Any]:
    if not projection:
        return copy.deepcopy(doc)
    include_id = bool(projection.get("_id", 1))
    result = {k: copy.deepcopy(doc[k]) for k, flag in projection.items() if flag and k in doc}
    if include_id:
        result["_id"] = doc["_id"]
    else:
        result.pop("_id", None)
    return result


def _sort_key(field: str) -> Callable[[dict[str, Any]], tuple[bool, Any]]:
    def key(doc: dict[str, Any]) -> tuple[bool, Any]:
        value = _resolve(doc, field)
        present = value is not _MISSING and value is not None
        return (present, value if present else None)

    return key


def _set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    target = doc
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


# ---------------------------------------------------------------------------
# Results & cursor
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class FakeWriteResult:
    """Counts reported by a fake write (subset of pymongo's result objects)."""

    inserted_id: Any = None
    inserted_count: int = 0
    matched_count: int = 0
    modified_count: int = 0
    deleted_count: int = 0
    upserted_id: Any = None


class FakeCursor:
    """Async cursor over a materialised list of documents."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = documents

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        if length:
            return self._documents[:length]
        return list(self._documents)

    def __aiter__(self) -> "FakeCursor":
        self._iter = iter(self._documents)
        return self

    async def __anext__(self) -> dict[str, Any]:
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class FakeClientSession:
    """Stand-in for ``AsyncIOMotorClientSession`` with transaction rollback.

    Set :attr:`commit_error` to make the next commit fail; the transaction's
    writes are then rolled back before the error is raised.
    """

    def __init__(self) -> None:
        self.in_transaction = False
        self.committed = 0
        self.aborted = 0
        self.ended = False
        self.commit_error: Exception | None = None
        self._undo: list[Callable[[], None]] = []

    def start_transaction(self) -> None:
        if self.in_transaction:
            raise InvalidOperation("Transaction already in progress")
        self.in_transaction = True
        self._undo = []

    async def commit_transaction(self) -> None:
        self._require_transaction()
        if self.commit_error is not None:
            error, self.commit_error = self.commit_error, None
            self._rollback()
            raise error
        self._undo = []
        self.in_transaction = False
        self.committed += 1

    async def abort_transaction(self) -> None:
        self._require_transaction()
        self._rollback()
        self.aborted += 1

    async def end_session(self) -> None:
        self.ended = True

    def record_undo(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def _rollback(self) -> None:
        for undo in reversed(self._undo):
            undo()
        self._undo = []
        self.in_transaction = False

    def _require_transaction(self) -> None:
        if not self.in_transaction:
            raise InvalidOperation("No transaction started")


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class InMemoryMongoCollection:
    """In-memory stand-in for ``AsyncIOMotorCollection``.

    :attr:`calls` lists the public methods invoked, in order.  Use
    :meth:`fail_next` to make the next call of a method raise.
    """

    def __init__(self, name: str = "collection") -> None:
        self.name = name
        self.calls: list[str] = []
        self._docs: dict[Any, dict[str, Any]] = {}
        self._unique: list[tuple[str, ...]] = []
        self._failures: dict[str, Exception] = {}

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def fail_next(self, method: str, error: Exception) -> None:
        self._failures[method] = error

    def all_documents(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._docs.values()]

    def _record(self, method: str) -> None:
        self.calls.append(method)
        error = self._failures.pop(method, None)
        if error is not None:
            raise error

    def _journal(self, session: Any, undo: Callable[[], None]) -> None:
        if session is not None and getattr(session, "in_transaction", False):
            session.record_undo(undo)

    def _matching(self, query: Mapping[str, Any] | None) -> list[dict[str, Any]]:
        return [doc for doc in self._docs.values() if matches(doc, query)]

    # ------------------------------------------------------------------
    # Write primitives
    # ------------------------------------------------------------------

    def _insert(self, document: Mapping[str, Any], session: Any) -> Any:
        doc = copy.deepcopy(dict(document))
        doc.setdefault("_id", ObjectId())
        key = doc["_id"]
        if key in self._docs:
            raise DuplicateKeyError(
                f"E11000 duplicate key error collection: {self.name} index: _id_ dup key: {key!r}",
                11000,
            )
        for fields in self._unique:
            values = tuple(_resolve(doc, f) for f in fields)
            if any(tuple(_resolve(other, f) for f in fields) == values for other in self._docs.values()):
                raise DuplicateKeyError(
                    f"E11000 duplicate key error collection: {self.name} dup key: {values!r}",
                    11000,
                )
        self._docs[key] = doc
        self._journal(session, lambda: self._docs.pop(key, None))
        return key

    def _update(
        self,
        query: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool,
        session: Any,
    ) -> FakeWriteResult:
        found = self._matching(query)
        if not found:
            if not upsert:
                return FakeWriteResult()
            seed = {k: v for k, v in query.items() if not k.startswith("$") and not isinstance(v, Mapping)}
            key = self._insert(seed, session)
            self._apply(self._docs[key], update)
            return FakeWriteResult(upserted_id=key)

        doc = found[0]
        key = doc["_id"]
        before = copy.deepcopy(doc)
        self._apply(doc, update)
        self._journal(session, lambda: self._docs.__setitem__(key, before))
        return FakeWriteResult(matched_count=1, modified_count=int(doc != before))

    @staticmethod
    def _apply(doc: dict[str, Any], update: Mapping[str, Any]) -> None:
        for op, fields in update.items():
            if op == "$set":
                for path, value in fields.items():
                    _set_path(doc, path, copy.deepcopy(value))
            elif op == "$unset":
                for path in fields:
                    doc.pop(path, None)
            elif op == "$push":
                for path, value in fields.items():
                    target = _resolve(doc, path)
                    if target is _MISSING:
                        target = []
                        _set_path(doc, path, target)
                    if isinstance(value, Mapping) and "$each" in value:
                        target.extend(copy.deepcopy(value["$each"]))
                    else:
                        target.append(copy.deepcopy(value))
            else:
                raise NotImplementedError(f"Unsupported update operator {op!r}")

    # ------------------------------------------------------------------
    # Motor API
    # ------------------------------------------------------------------

    async def create_index(self, keys: Sequence[tuple[str, int]] | str, *, unique: bool = False, **kwargs: Any) -> str:
        self._record("create_index")
        fields = (keys,) if isinstance(keys, str) else tuple(field for field, _ in keys)
        if unique and fields not in self._unique:
            self._unique.append(fields)
        return kwargs.get("name") or "_".join(fields)

    async def insert_one(self, document: Mapping[str, Any], session: Any = None) -> FakeWriteResult:
        self._record("insert_one")
        return FakeWriteResult(inserted_id=self._insert(document, session), inserted_count=1)

    async def insert_many(
        self,
        documents: Sequence[Mapping[str, Any]],
        ordered: bool = True,
        session: Any = None,
    ) -> FakeWriteResult:
        self._record("insert_many")
        if not documents:
            raise TypeError("documents must be a non-empty list")
        inserted = 0
        for index, document in enumerate(documents):
            try:
                self._insert(document, session)
            except DuplicateKeyError as exc:
                raise BulkWriteError(
                    {
                        "writeErrors": [{"index": index, "code": 11000, "errmsg": str(exc)}],
                        "nInserted": inserted,
                    }
                ) from exc
            inserted += 1
        return FakeWriteResult(inserted_count=inserted)

    async def update_one(
        self,
        filter: Mapping[str, Any],  # noqa: A002
        update: Mapping[str, Any],
        upsert: bool = False,
        session: Any = None,
    ) -> FakeWriteResult:
        self._record("update_one")
        return self._update(filter, update, upsert, session)

    async def delete_many(self, filter: Mapping[str, Any], session: Any = None) -> FakeWriteResult:  # noqa: A002
        self._record("delete_many")
        removed = {doc["_id"]: doc for doc in self._matching(filter)}
        for key in removed:
            del self._docs[key]
        self._journal(session, lambda: self._docs.update(removed))
        return FakeWriteResult(deleted_count=len(removed))

    async def bulk_write(
        self,
        requests: Sequence[Any],
        ordered: bool = True,
        session: Any = None,
    ) -> FakeWriteResult:
        self._record("bulk_write")
        if not requests:
            raise InvalidOperation("No operations to execute")
        inserted = matched = modified = 0
        for index, request in enumerate(requests):
            try:
                if isinstance(request, InsertOne):
                    self._insert(request._doc, session)
                    inserted += 1
                elif isinstance(request, UpdateOne):
                    result = self._update(request._filter, request._doc, bool(request._upsert), session)
                    matched += result.matched_count
                    modified += result.modified_count
                else:
                    raise NotImplementedError(f"Unsupported bulk operation {type(request).__name__}")
            except DuplicateKeyError as exc:
                raise BulkWriteError(
                    {
                        "writeErrors": [{"index": index, "code": 11000, "errmsg": str(exc)}],
                        "nInserted": inserted,
                        "nMatched": matched,
                        "nModified": modified,
                    }
                ) from exc
        return FakeWriteResult(inserted_count=inserted, matched_count=matched, modified_count=modified)

    async def find_one(
        self,
        filter: Mapping[str, Any] | None = None,  # noqa: A002
        projection: Mapping[str, Any] | None = None,
        session: Any = None,
    ) -> dict[str, Any] | None:
        self._record("find_one")
        found = self._matching(filter)
        return _project(found[0], projection) if found else None

    def find(
        self,
        filter: Mapping[str, Any] | None = None,  # noqa: A002
        projection: Mapping[str, Any] | None = None,
        skip: int = 0,
        limit: int = 0,
        sort: Sequence[tuple[str, int]] | None = None,
        session: Any = None,
    ) -> FakeCursor:
        self._record("find")
        docs = self._matching(filter)
        for field, direction in reversed(list(sort or [])):
            docs.sort(key=_sort_key(field), reverse=direction < 0)
        docs = docs[skip:]
        if limit:
            docs = docs[:limit]
        return FakeCursor([_project(doc, projection) for doc in docs])

    async def count_documents(
        self,
        filter: Mapping[str, Any],  # noqa: A002
        session: Any = None,
        limit: int | None = None,
        skip: int = 0,
    ) -> int:
        self._record("count_documents")
        count = max(len(self._matching(filter)) - skip, 0)
        return min(count, limit) if limit else count


__all__ = [
    "FakeClientSession",
    "FakeCursor",
    "FakeWriteResult",
    "InMemoryMongoCollection",
    "matches",
]
