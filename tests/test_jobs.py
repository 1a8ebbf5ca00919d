"""Tests for the reconcile job."""

import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from setkeeper.jobs.reconcile_sets import main, run_reconcile
from setkeeper.reconcile.reconciler import ReconciledSet


def _result(code: str, exhausted: bool = False) -> ReconciledSet:
    return ReconciledSet(
        set_code=code, set_name=code.upper(), expected_total=10, exhausted=exhausted
    )


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    return client


class TestRunReconcile:
    async def test_all_sets_by_default(self, mock_client) -> None:
        reconciler = MagicMock()
        reconciler.reconcile = AsyncMock(side_effect=lambda code: _result(code))

        with (
            patch("setkeeper.jobs.reconcile_sets.ScryfallClient", return_value=mock_client),
            patch("setkeeper.jobs.reconcile_sets.SetReconciler", return_value=reconciler),
        ):
            results = await run_reconcile()

        assert set(results) == {"tla", "tle"}
        mock_client.__aexit__.assert_awaited_once()

    async def test_selected_sets(self, mock_client) -> None:
        reconciler = MagicMock()
        reconciler.reconcile = AsyncMock(side_effect=lambda code: _result(code))

        with (
            patch("setkeeper.jobs.reconcile_sets.ScryfallClient", return_value=mock_client),
            patch("setkeeper.jobs.reconcile_sets.SetReconciler", return_value=reconciler),
        ):
            results = await run_reconcile(["tle"])

        assert list(results) == ["tle"]
        reconciler.reconcile.assert_awaited_once_with("tle")

    async def test_exhausted_set_does_not_stop_others(self, mock_client) -> None:
        reconciler = MagicMock()
        reconciler.reconcile = AsyncMock(
            side_effect=lambda code: _result(code, exhausted=code == "tla")
        )

        with (
            patch("setkeeper.jobs.reconcile_sets.ScryfallClient", return_value=mock_client),
            patch("setkeeper.jobs.reconcile_sets.SetReconciler", return_value=reconciler),
        ):
            results = await run_reconcile(["tla", "tle"])

        assert results["tla"].exhausted
        assert not results["tle"].exhausted


class TestMain:
    def test_exit_code_when_exhausted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["reconcile_sets", "tla"])

        with (
            patch(
                "setkeeper.jobs.reconcile_sets.run_reconcile",
                new=AsyncMock(return_value={"tla": _result("tla", exhausted=True)}),
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 1

    def test_success(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["reconcile_sets"])
        run = AsyncMock(return_value={"tla": _result("tla")})

        with patch("setkeeper.jobs.reconcile_sets.run_reconcile", new=run):
            main()

        run.assert_awaited_once_with(None)
