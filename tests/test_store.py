"""
Tests for the key-value stores and the batched `collections()` writer.
"""
import unittest

from database import create_engine_for, dispose_db, init_db, session_factory_for
from services.store import InMemoryKeyValueStore, SqlKeyValueStore


class StoreContract:
    async def test_get_default_and_roundtrip(self):
        self.assertIsNone(await self.store.get("loan_app_missing"))
        self.assertEqual(await self.store.get_list("loan_app_missing"), [])
        await self.store.set("loan_app_users", [{"id": "u1"}])
        self.assertEqual(await self.store.get("loan_app_users"), [{"id": "u1"}])

    async def test_returned_values_are_copies(self):
        await self.store.set("loan_app_users", [{"id": "u1"}])
        users = await self.store.get("loan_app_users")
        users.append({"id": "u2"})
        self.assertEqual(len(await self.store.get("loan_app_users")), 1)

    async def test_remove_and_keys(self):
        await self.store.set_many({"loan_app_a": [1], "loan_app_b": [2]})
        self.assertEqual(sorted(await self.store.keys()), ["loan_app_a", "loan_app_b"])
        await self.store.remove("loan_app_a")
        await self.store.remove("loan_app_never_set")
        self.assertEqual(await self.store.keys(), ["loan_app_b"])

    async def test_collections_commit_on_success(self):
        async with self.store.collections("loan_app_a", "loan_app_b") as data:
            data["loan_app_a"].append({"n": 1})
            data["loan_app_b"].append({"n": 2})
        self.assertEqual(await self.store.get("loan_app_a"), [{"n": 1}])
        self.assertEqual(await self.store.get("loan_app_b"), [{"n": 2}])

    async def test_collections_write_nothing_on_error(self):
        await self.store.set("loan_app_a", [{"n": 0}])
        with self.assertRaises(RuntimeError):
            async with self.store.collections("loan_app_a", "loan_app_b") as data:
                data["loan_app_a"].append({"n": 1})
                data["loan_app_b"].append({"n": 2})
                raise RuntimeError("boom")
        self.assertEqual(await self.store.get("loan_app_a"), [{"n": 0}])
        self.assertIsNone(await self.store.get("loan_app_b"))


class TestInMemoryStore(StoreContract, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = InMemoryKeyValueStore()


class TestSqlStore(StoreContract, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine = create_engine_for("sqlite+aiosqlite:///:memory:")
        await init_db(self.engine)
        self.store = SqlKeyValueStore(session_factory_for(self.engine))

    async def asyncTearDown(self):
        await dispose_db(self.engine)

    async def test_overwrite_existing_key(self):
        await self.store.set("loan_app_users", [{"id": "u1"}])
        await self.store.set("loan_app_users", [{"id": "u2"}])
        self.assertEqual(await self.store.get("loan_app_users"), [{"id": "u2"}])


if __name__ == "__main__":
    unittest.main()
