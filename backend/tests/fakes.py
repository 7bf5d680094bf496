"""
Collections Motor en mémoire pour les tests (sous-ensemble des opérations utilisées par l'API).
"""
import copy
import uuid
from types import SimpleNamespace

_COMPARATORS = {
    "$gte": lambda value, arg: value is not None and value >= arg,
    "$gt":  lambda value, arg: value is not None and value > arg,
    "$lte": lambda value, arg: value is not None and value <= arg,
    "$lt":  lambda value, arg: value is not None and value < arg,
    "$ne":  lambda value, arg: value != arg,
    "$in":  lambda value, arg: value in arg,
}


def _is_operator_dict(cond) -> bool:
    return isinstance(cond, dict) and bool(cond) and all(k.startswith("$") for k in cond)


def matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
            continue
        value = doc.get(key)
        if _is_operator_dict(cond):
            if not all(_COMPARATORS[op](value, arg) for op, arg in cond.items()):
                return False
        elif value != cond:
            return False
    return True


def project(doc: dict, projection) -> dict:
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        result = {k: doc[k] for k in included if k in doc}
        if projection.get("_id", 1) and "_id" in doc:
            result["_id"] = doc["_id"]
        return result
    for key, keep in projection.items():
        if not keep:
            doc.pop(key, None)
    return doc


class FakeCursor:
    def __init__(self, docs: list):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: (d.get(key) is None, d.get(key)), reverse=direction < 0)
        return self

    def skip(self, n: int):
        self._docs = self._docs[n:]
        return self

    def limit(self, n: int):
        if n:
            self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        return self._docs[:length] if length else list(self._docs)

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    def __init__(self):
        self.docs: list[dict] = []

    async def insert_one(self, doc: dict):
        doc.setdefault("_id", uuid.uuid4().hex)
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict = None, projection=None):
        for doc in self.docs:
            if matches(doc, query or {}):
                return project(doc, projection)
        return None

    def find(self, query: dict = None, projection=None) -> FakeCursor:
        return FakeCursor([project(d, projection) for d in self.docs if matches(d, query or {})])

    async def count_documents(self, query: dict) -> int:
        return sum(1 for d in self.docs if matches(d, query))

    async def update_one(self, query: dict, update: dict, upsert: bool = False):
        for doc in self.docs:
            if matches(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                for key, inc in update.get("$inc", {}).items():
                    doc[key] = doc.get(key, 0) + inc
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
        new_doc = {k: v for k, v in query.items() if not k.startswith("$") and not _is_operator_dict(v)}
        new_doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
        new_doc.update(copy.deepcopy(update.get("$set", {})))
        result = await self.insert_one(new_doc)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=result.inserted_id)

    def aggregate(self, pipeline: list) -> FakeCursor:
        """$match puis $group avec accumulateurs $sum, seul usage du tableau de bord."""
        docs = [copy.deepcopy(d) for d in self.docs]
        for stage in pipeline:
            if "$match" in stage:
                docs = [d for d in docs if matches(d, stage["$match"])]
            elif "$group" in stage:
                group_spec = stage["$group"]
                if not docs:
                    continue
                group = {"_id": group_spec["_id"]}
                for name, acc in group_spec.items():
                    if name != "_id":
                        field = acc["$sum"]
                        group[name] = sum(
                            d.get(field[1:], 0) if isinstance(field, str) else field for d in docs
                        )
                docs = [group]
        return FakeCursor(docs)

    async def delete_one(self, query: dict):
        for index, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self._collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection())

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]
