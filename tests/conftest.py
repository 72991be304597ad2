import copy
import itertools
from collections import defaultdict
from types import SimpleNamespace
from typing import Dict, Optional

import pytest

from mavericks.core.auth import CurrentUser
from mavericks.core.errors import ContentGenerationError, StoreError


def _matches(doc: dict, where: Optional[dict]) -> bool:
    for field, expected in (where or {}).items():
        value = doc.get(field)
        if isinstance(value, list) and not isinstance(expected, list):
            if expected not in value:
                return False
        elif value != expected:
            return False
    return True


def _sorted(docs, order_by):
    docs = list(docs)
    for field, direction in reversed(list(order_by or [])):
        docs.sort(key=lambda d: (d.get(field) is None, d.get(field)), reverse=(direction == "desc"))
    return docs


def _set_path(doc: dict, path: str, value):
    parts = path.split(".")
    for part in parts[:-1]:
        doc = doc.setdefault(part, {})
    doc[parts[-1]] = value


def _has_path(doc: dict, path: str) -> bool:
    for part in path.split("."):
        if not isinstance(doc, dict) or part not in doc:
            return False
        doc = doc[part]
    return True


class _Collections:
    """Shared read/write helpers over {collection: {key: doc}}"""

    def __init__(self, data, keys):
        self.data = data
        self.keys = keys

    async def get(self, collection, key):
        doc = self.data[collection].get(key)
        return None if doc is None else {**copy.deepcopy(doc), "id": key}

    async def set(self, collection, key, doc):
        self.data[collection][key] = copy.deepcopy({k: v for k, v in doc.items() if k != "id"})

    async def add(self, collection, doc):
        key = f"{collection}-{next(self.keys)}"
        await self.set(collection, key, doc)
        return key

    async def update(self, collection, key, fields):
        doc = self.data[collection].get(key)
        if doc is None:
            return False
        for path, value in fields.items():
            _set_path(doc, path, copy.deepcopy(value))
        return True

    async def delete(self, collection, key):
        self.data[collection].pop(key, None)

    async def query(self, collection, where=None, order_by=None, limit=None):
        docs = [{**copy.deepcopy(d), "id": k} for k, d in self.data[collection].items() if _matches(d, where)]
        docs = _sorted(docs, order_by)
        return docs[:limit] if limit else docs


class InMemoryDocumentStore(_Collections):
    """Dict-backed stand-in for DocumentStore with all-or-nothing transactions"""

    def __init__(self):
        super().__init__(defaultdict(dict), itertools.count(1))
        self.fail_next_transactions = 0
        self.transactions = 0

    async def set_field_if_absent(self, collection, key, field, value):
        doc = self.data[collection].get(key)
        if doc is None or _has_path(doc, field):
            return False
        _set_path(doc, field, copy.deepcopy(value))
        return True

    async def update_many(self, collection, where, fields):
        count = 0
        for key, doc in self.data[collection].items():
            if _matches(doc, where):
                await self.update(collection, key, fields)
                count += 1
        return count

    async def delete_many(self, collection, where):
        doomed = [k for k, d in self.data[collection].items() if _matches(d, where)]
        for key in doomed:
            del self.data[collection][key]
        return len(doomed)

    async def count(self, collection, where=None):
        return len([d for d in self.data[collection].values() if _matches(d, where)])

    async def run_transaction(self, fn):
        self.transactions += 1
        staged = defaultdict(dict, copy.deepcopy(dict(self.data)))
        result = await fn(_Collections(staged, self.keys))
        if self.fail_next_transactions:
            self.fail_next_transactions -= 1
            raise StoreError("transaction aborted")
        self.data = staged
        return result

    def raw(self, collection: str, key: str) -> Optional[dict]:
        return self.data[collection].get(key)


class FakeProvider:
    """Scripted content provider that records every call"""

    def __init__(self):
        self.calls = []
        self.fail_kinds = set()
        self.fail_languages = set()
        self.missions_generated = 0
        self.judge_result: Optional[Dict] = None

    def count(self, kind: str, language: Optional[str] = None) -> int:
        return len([
            params for k, params in self.calls
            if k == kind and (language is None or params.get("language") == language)
        ])

    async def generate(self, kind, params):
        self.calls.append((kind, dict(params)))
        if kind in self.fail_kinds:
            raise ContentGenerationError(f"Failed to generate {kind}")

        if kind == "daily_mission":
            self.missions_generated += 1
            n = self.missions_generated
            return {
                "question_text": f"Parcel Router #{n}",
                "description": f"Route parcels for {params['date']} (variant {n}).",
                "constraints": ["1 <= n <= 10^5", "weights are positive"],
                "starter_code": f"// {params['language']} starter",
                "test_cases": [
                    {"input": "3\n1 2 3", "expected_output": "6", "hidden": False},
                    {"input": "1\n5", "expected_output": "5", "hidden": False},
                    {"input": "2\n0 0", "expected_output": "0", "hidden": True},
                    {"input": "4\n1 1 1 1", "expected_output": "4", "hidden": True},
                    {"input": "1\n100000", "expected_output": "100000", "hidden": True},
                ],
            }

        if kind == "starter_code":
            if params["language"] in self.fail_languages:
                raise ContentGenerationError(f"Failed to generate starter code for {params['language']}")
            return {"starter_code": f"// {params['language']} starter for {params['question_text']}"}

        if kind == "judge_code":
            if self.judge_result is not None:
                return self.judge_result
            return {"error": "", "test_results": [{"passed": True, "input": "x", "output": "y", "expected": "y"}]}

        if kind == "evaluate_solution":
            return {
                "test_results": [{"passed": True, "input": "x", "output": "y", "expected": "y"}],
                "error": "",
                "time_complexity": "O(n)",
                "space_complexity": "O(1)",
                "feedback": "Clean single pass.",
            }

        if kind == "concept_explanation":
            return {"explanation": f"  {params['concept']} splits work into smaller pieces.  "}

        raise ValueError(f"Unsupported content kind: {kind}")


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def alice():
    return CurrentUser(uid="alice", email="alice@example.com", name="Alice", avatar="a.png")


@pytest.fixture
def admin_user():
    return CurrentUser(uid="root", email="root@example.com", name="Root", is_admin=True)


@pytest.fixture
def fake_config():
    return SimpleNamespace(MISSION_ENRICHMENT="blocking", MISSION_TIMEZONE="Asia/Kolkata", LOG_LEVEL="INFO")
