"""
Tests for document upload, versioning and deletion.
"""
import unittest

from services.documents import DocumentManager
from services.errors import NotFoundError, ValidationError
from services.lifecycle import LoanLifecycleEngine
from services.notifications import NotificationOutbox
from services.store import InMemoryKeyValueStore, StorageKeys
from services.timeline import TimelineLog

PDF_BYTES = b"%PDF-1.4 demo"


class TestDocumentManager(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = InMemoryKeyValueStore()
        engine = LoanLifecycleEngine(
            self.store,
            TimelineLog(self.store),
            NotificationOutbox(self.store),
            review_delay_seconds=None,
        )
        self.app = await engine.create_or_load_draft("u1")
        self.docs = DocumentManager(self.store, engine, max_bytes=1024)

    async def test_upload_stores_data_url(self):
        doc = await self.docs.upload_document(self.app.id, "id_document", "id.pdf", "application/pdf", PDF_BYTES)
        self.assertEqual(doc.version, 1)
        self.assertEqual(doc.file_size, len(PDF_BYTES))
        self.assertTrue(doc.file_data.startswith("data:application/pdf;base64,"))
        self.assertEqual([d.id for d in await self.docs.list_documents(self.app.id)], [doc.id])

    async def test_reupload_replaces_and_bumps_version(self):
        await self.docs.upload_document(self.app.id, "income_proof", "a.png", "image/png", b"png-1")
        second = await self.docs.upload_document(self.app.id, "income_proof", "b.jpg", "image/jpg", b"jpg-2")
        self.assertEqual(second.version, 2)
        self.assertTrue(second.file_data.startswith("data:image/jpeg;base64,"))
        rows = await self.store.get_list(StorageKeys.DOCUMENTS)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["filename"], "b.jpg")

    async def test_categories_are_independent(self):
        await self.docs.upload_document(self.app.id, "id_document", "id.pdf", "application/pdf", PDF_BYTES)
        other = await self.docs.upload_document(self.app.id, "address_proof", "bill.pdf", "application/pdf", PDF_BYTES)
        self.assertEqual(other.version, 1)
        self.assertEqual(len(await self.docs.list_documents(self.app.id)), 2)

    async def test_rejects_bad_uploads(self):
        cases = [
            ("id_document", "notes.txt", "text/plain", b"hello"),
            ("id_document", "big.pdf", "application/pdf", b"x" * 1025),
            ("id_document", "empty.pdf", "application/pdf", b""),
            ("selfie", "me.png", "image/png", b"png"),
        ]
        for category, name, content_type, content in cases:
            with self.subTest(name=name):
                with self.assertRaises(ValidationError):
                    await self.docs.upload_document(self.app.id, category, name, content_type, content)
        self.assertEqual(await self.docs.list_documents(self.app.id), [])

    async def test_upload_at_size_limit_is_accepted(self):
        doc = await self.docs.upload_document(self.app.id, "id_document", "max.pdf", "application/pdf", b"x" * 1024)
        self.assertEqual(doc.file_size, 1024)

    async def test_upload_to_unknown_application(self):
        with self.assertRaises(NotFoundError):
            await self.docs.upload_document("app-missing", "id_document", "id.pdf", "application/pdf", PDF_BYTES)

    async def test_delete(self):
        doc = await self.docs.upload_document(self.app.id, "id_document", "id.pdf", "application/pdf", PDF_BYTES)
        await self.docs.delete_document(doc.id)
        self.assertEqual(await self.docs.list_documents(self.app.id), [])
        with self.assertRaises(NotFoundError):
            await self.docs.delete_document(doc.id)
        fresh = await self.docs.upload_document(self.app.id, "id_document", "id.pdf", "application/pdf", PDF_BYTES)
        self.assertEqual(fresh.version, 1)


if __name__ == "__main__":
    unittest.main()
