"""Store adapter tests with patched repositories and a fake session factory."""
from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from sqlalchemy.exc import OperationalError

from pagepilot.config.style import StyleStoreConfig
from pagepilot.core.exceptions import StoreError, SubjectNotFoundError
from pagepilot.orchestrator.fields.compiler import SetDocumentKey
from pagepilot.services.record_store import RecordStore
from pagepilot.services.style_store import StyleStore


def _run(coro):
    return asyncio.run(coro)


class FakeSession:
    def __init__(self) -> None:
        self.flush = AsyncMock()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def begin(self):
        return self


def _factory(session=None):
    session = session or FakeSession()
    return lambda: session


def _row(**kwargs):
    defaults = {"client_id": "6", "props": {}, "is_secured": False, "security_groups": []}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestStoreTransaction(unittest.TestCase):
    def test_driver_error_becomes_store_error(self) -> None:
        def broken():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        with self.assertRaises(StoreError) as ctx:
            _run(RecordStore(broken).fetch_all("6"))
        self.assertIsInstance(ctx.exception.cause, OperationalError)
        self.assertEqual(ctx.exception.details, {"operation": "fetch_all"})


class TestRecordStoreApplyWrite(unittest.TestCase):
    def test_locked_row_is_merged_not_replaced(self) -> None:
        row = _row(props={"title": "Old", "caption": "Keep"})
        with patch("pagepilot.services.record_store.ComponentRepository") as Repo:
            repo = Repo.return_value
            repo.lock_for_client = AsyncMock(return_value=row)
            repo.update = AsyncMock(
                side_effect=lambda instance, data: SimpleNamespace(to_dict=lambda: dict(data))
            )
            out = _run(RecordStore(_factory()).apply_write(
                "6", "c1", [SetDocumentKey("props", "title", "New")],
            ))

        repo.lock_for_client.assert_awaited_once_with("6", "c1")
        repo.update.assert_awaited_once()
        self.assertEqual(out, {"props": {"title": "New", "caption": "Keep"}})
        self.assertEqual(row.props, {"title": "Old", "caption": "Keep"})

    def test_missing_row(self) -> None:
        with patch("pagepilot.services.record_store.ComponentRepository") as Repo:
            Repo.return_value.lock_for_client = AsyncMock(return_value=None)
            with self.assertRaises(SubjectNotFoundError):
                _run(RecordStore(_factory()).apply_write("6", "zz", [SetDocumentKey("props", "title", "x")]))


class TestRecordStoreTags(unittest.TestCase):
    def _patched(self, row, group):
        comp = patch("pagepilot.services.record_store.ComponentRepository")
        groups = patch("pagepilot.services.record_store.SecurityGroupRepository")
        Comp, Groups = comp.start(), groups.start()
        self.addCleanup(comp.stop)
        self.addCleanup(groups.stop)
        Comp.return_value.lock_for_client = AsyncMock(return_value=row)
        Groups.return_value.get_by_id = AsyncMock(return_value=group)

    def test_attach_twice_changes_once(self) -> None:
        group = SimpleNamespace(group_id=uuid4(), client_id="6", title="VIP")
        row = _row()
        self._patched(row, group)
        store = RecordStore(_factory())

        first = _run(store.attach_tag("6", "c1", str(group.group_id)))
        second = _run(store.attach_tag("6", "c1", str(group.group_id)))

        self.assertTrue(first.changed)
        self.assertFalse(second.changed)
        self.assertTrue(second.still_tagged)
        self.assertEqual(row.security_groups, [group])
        self.assertTrue(row.is_secured)

    def test_detach_recomputes_secured_flag(self) -> None:
        vip = SimpleNamespace(group_id=uuid4(), client_id="6", title="VIP")
        staff = SimpleNamespace(group_id=uuid4(), client_id="6", title="Staff")
        row = _row(security_groups=[vip, staff], is_secured=True)
        self._patched(row, vip)

        result = _run(RecordStore(_factory()).detach_tag("6", "c1", str(vip.group_id)))

        self.assertTrue(result.changed)
        self.assertTrue(result.is_secured)
        self.assertEqual(row.security_groups, [staff])

    def test_group_of_another_client_is_not_found(self) -> None:
        group = SimpleNamespace(group_id=uuid4(), client_id="9", title="VIP")
        self._patched(_row(), group)
        with self.assertRaises(SubjectNotFoundError):
            _run(RecordStore(_factory()).attach_tag("6", "c1", str(group.group_id)))


class TestStyleStoreFetch(unittest.TestCase):
    def test_media_ids_resolved_to_cdn_urls(self) -> None:
        design = SimpleNamespace(
            banner_library_id="lib1",
            background_library_id=None,
            to_dict=lambda: {"client_id": "6", "header_design": {"Layout": "banner"}},
        )
        with patch("pagepilot.services.style_store.DesignRepository") as Designs, \
                patch("pagepilot.services.style_store.MediaRepository") as Media:
            Designs.return_value.get_for_client = AsyncMock(return_value=design)
            Media.return_value.s3_keys = AsyncMock(return_value={"lib1": "media/banner.png"})
            store = StyleStore(_factory(), StyleStoreConfig(cdn_domain="cdn.example.com"))
            out = _run(store.fetch("6"))

        self.assertEqual(out["banner_media_url"], "https://cdn.example.com/media/banner.png")
        self.assertIsNone(out["background_media_url"])
        self.assertEqual(out["header_design"], {"Layout": "banner"})

    def test_missing_design(self) -> None:
        with patch("pagepilot.services.style_store.DesignRepository") as Designs:
            Designs.return_value.get_for_client = AsyncMock(return_value=None)
            with self.assertRaises(SubjectNotFoundError):
                _run(StyleStore(_factory()).fetch("6"))
