"""
Unit tests for import session tracking
"""

import pytest

from legacy_import.import_session import (
    ImportPhase,
    ImportSession,
    clear_import_session,
    create_import_session,
    get_import_session,
)

pytestmark = pytest.mark.unit


class TestImportSession:
    """Test session state and cancellation"""

    @pytest.mark.asyncio
    async def test_phases_and_summary(self):
        session = ImportSession("import_test")
        await session.start_phase(ImportPhase.SCHOOLS)
        session.record_mapping("schools", parsed=3, mapped=2, warnings=1, errors=1)

        summary = session.get_session_summary()

        assert summary["session_id"] == "import_test"
        assert summary["current_phase"] == "schools"
        assert summary["cancelled"] is False
        assert summary["statistics"]["schools"] == {"parsed": 3, "mapped": 2, "warnings": 1, "errors": 1}

    @pytest.mark.asyncio
    async def test_cancel(self):
        session = ImportSession()

        assert not session.is_cancelled()
        session.cancel()
        assert session.is_cancelled()

    @pytest.mark.asyncio
    async def test_global_session(self):
        session = create_import_session("import_global")

        assert get_import_session() is session
        clear_import_session()
        assert get_import_session() is None
