"""Tests for the in-memory record store."""

import asyncio

import pytest

from leaveflow.core.exceptions import StorageError
from leaveflow.services.workflow import InMemoryRecordStore

from workflow_support import make_request


class TestInMemoryRecordStore:
    """Tests for InMemoryRecordStore transactions and locking."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = InMemoryRecordStore()
        self.store.requests["LR-TEST"] = make_request()

    @pytest.mark.asyncio
    async def test_locks_are_discarded_after_use(self):
        """Test record locks do not accumulate once transactions end."""
        for request_id in ["LR-TEST", "LR-OTHER", "LR-THIRD"]:
            async with self.store.transaction() as uow:
                await uow.load_request(request_id, for_update=True)

        assert self.store._locks == {}
        assert self.store._lock_users == {}

    @pytest.mark.asyncio
    async def test_for_update_serialises_transactions(self):
        """Test a second locking transaction waits for the first to finish."""
        events = []
        first_holds_lock = asyncio.Event()

        async def first():
            async with self.store.transaction() as uow:
                await uow.load_request("LR-TEST", for_update=True)
                first_holds_lock.set()
                await asyncio.sleep(0.01)
                events.append("first done")

        async def second():
            await first_holds_lock.wait()
            async with self.store.transaction() as uow:
                await uow.load_request("LR-TEST", for_update=True)
                events.append("second locked")

        await asyncio.gather(first(), second())

        assert events == ["first done", "second locked"]
        assert self.store._locks == {}

    @pytest.mark.asyncio
    async def test_failed_transaction_releases_lock_and_discards_writes(self):
        with pytest.raises(StorageError):
            async with self.store.transaction() as uow:
                request = await uow.load_request("LR-TEST", for_update=True)
                request.reason = "changed"
                await uow.save_request(request)
                raise StorageError("boom")

        assert self.store.requests["LR-TEST"].reason != "changed"
        assert self.store._locks == {}
