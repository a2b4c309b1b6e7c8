"""Unit tests for the compensating-step runner and conflict retries."""

import logging

import pytest
from beanie.exceptions import RevisionIdWasChanged

from drambox.services.concurrency import retry_on_conflict
from drambox.services.exceptions import ConcurrencyConflict, InvalidState
from drambox.services.saga import Saga


class TestSaga:
    """Tests for Saga rollback behaviour."""

    @pytest.mark.asyncio
    async def test_success_runs_no_compensation(self):
        calls = []

        async def undo():
            calls.append("undo")

        async with Saga("ok") as saga:
            saga.on_rollback("step", undo)

        assert calls == []

    @pytest.mark.asyncio
    async def test_failure_compensates_in_reverse_and_reraises(self):
        calls = []

        def undo(label):
            async def action():
                calls.append(label)
            return action

        with pytest.raises(InvalidState):
            async with Saga("record_pour") as saga:
                saga.on_rollback("delete session", undo("session"))
                saga.on_rollback("delete pour", undo("pour"))
                saga.on_rollback("restore bottle", undo("bottle"))
                raise InvalidState("boom")

        assert calls == ["bottle", "pour", "session"]

    @pytest.mark.asyncio
    async def test_failed_compensation_is_logged_and_others_still_run(self, caplog):
        calls = []

        async def broken():
            raise RuntimeError("database went away")

        async def fine():
            calls.append("fine")

        with caplog.at_level(logging.ERROR, logger="drambox.jobs"):
            with pytest.raises(ValueError):
                async with Saga("delete_pour", pour_id="p1") as saga:
                    saga.on_rollback("re-insert pour", fine)
                    saga.on_rollback("restore bottle", broken)
                    raise ValueError("step failed")

        assert calls == ["fine"]
        assert saga.failed_compensations == ["restore bottle"]
        assert "INTEGRITY DEFECT" in caplog.text


class TestRetryOnConflict:
    """Tests for optimistic-concurrency retries."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        attempts = []

        async def operation():
            attempts.append(1)
            if len(attempts) < 2:
                raise RevisionIdWasChanged()
            return "saved"

        assert await retry_on_conflict(operation, 3) == "saved"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_exhausted_attempts_raise_conflict(self):
        attempts = []

        async def operation():
            attempts.append(1)
            raise RevisionIdWasChanged()

        with pytest.raises(ConcurrencyConflict):
            await retry_on_conflict(operation, 3, "record_pour")
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self):
        attempts = []

        async def operation():
            attempts.append(1)
            raise InvalidState("Bottle is finished")

        with pytest.raises(InvalidState):
            await retry_on_conflict(operation, 3)
        assert len(attempts) == 1
