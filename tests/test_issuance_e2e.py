from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from launchpad.crypto.keys import Keypair
from launchpad.ledger.builder import build_groups
from launchpad.ledger.layout import derive_holder_address
from launchpad.runtime import metrics
from launchpad.runtime.errors import GroupSubmissionError
from launchpad.runtime.issuance_types import (
    STATE_CONFIRMING,
    STATE_IDLE,
    STATE_PUBLISHING,
    STATE_SUBMITTING,
    STATE_SUCCEEDED,
    IssuanceRequest,
)
from launchpad.runtime.memory_ledger import MemoryLedgerGateway
from launchpad.runtime.orchestrator import IssuanceOrchestrator
from launchpad.storage.memory_store import MemoryPublishCapability
from launchpad.storage.metadata import MetadataPublisher
from launchpad.testing.doubles import RecordingGateway, RecordingPublishCapability

FOO = IssuanceRequest(
    name="Foo",
    symbol="FOO",
    decimal_precision=6,
    initial_supply=1000,
    image_uri="https://img.test/foo.png",
    description="Foo token",
    revoke_mint_authority=True,
)


def _memory_orch(*, fail_on_step=None):
    payer = Keypair.from_label("payer")
    store = MemoryPublishCapability()
    gw = MemoryLedgerGateway(payer, fail_on_step=fail_on_step, airdrop_lamports=10_000_000_000)
    orch = IssuanceOrchestrator(MetadataPublisher(store), gw, payer, explorer=lambda h: f"https://explorer.test/tx/{h}")
    return orch, store, gw, payer


def test_issue_submits_all_four_groups_in_order() -> None:
    gw = RecordingGateway()
    orch = IssuanceOrchestrator(MetadataPublisher(RecordingPublishCapability()), gw, Keypair.from_label("payer"))

    result = orch.execute(FOO)

    assert orch.last_run.state == STATE_SUCCEEDED
    assert gw.steps == [1, 2, 3, 4]
    assert result.submission_handle
    assert result.submission_handle == result.handles[-1]
    assert len(result.handles) == 4


def test_issue_against_memory_ledger_creates_asset_and_holder() -> None:
    metrics.reset()
    orch, store, gw, payer = _memory_orch()

    result = orch.execute(FOO)

    asset = result.asset_public_key
    mint = gw.ledger.mints[asset]
    assert mint["decimals"] == 6
    assert mint["supply"] == 1000
    assert mint["mint_authority"] is None
    assert mint["freeze_authority"] == payer.public_key
    assert mint["metadata"]["uri"] == result.content_uri
    assert mint["metadata"]["update_authority"] == payer.public_key

    holder = gw.ledger.holders[derive_holder_address(owner=payer.public_key, asset=asset)]
    assert holder == {"owner": payer.public_key, "asset": asset, "amount": 1000}

    published = store.get(result.content_uri)
    assert published is not None
    assert published.filename == "metadata.json"
    assert json.loads(published.data) == {
        "name": "Foo",
        "symbol": "FOO",
        "description": "Foo token",
        "image": "https://img.test/foo.png",
    }

    assert result.explorer_url == f"https://explorer.test/tx/{result.submission_handle}"
    assert metrics.get_counter("issuance_succeeded") == 1
    assert metrics.get_counter("groups_confirmed") == 4


def test_run_transitions_are_strictly_sequential() -> None:
    orch, _, _, _ = _memory_orch()
    orch.execute(FOO)

    expected = [(STATE_IDLE, 0), (STATE_PUBLISHING, 0)]
    for step in (1, 2, 3, 4):
        expected += [(STATE_SUBMITTING, step), (STATE_CONFIRMING, step)]
    expected.append((STATE_SUCCEEDED, 4))
    assert orch.last_run.transitions == expected


def test_reexecute_generates_fresh_asset_identity() -> None:
    orch, _, gw, _ = _memory_orch()

    first = orch.execute(FOO)
    second = orch.execute(FOO)

    assert first.asset_public_key != second.asset_public_key
    assert set(first.handles).isdisjoint(second.handles)
    assert len(gw.submitted) == 8
    assert gw.submitted[4].operations[0].accounts[1] == second.asset_public_key
    assert gw.ledger.mints[first.asset_public_key]["supply"] == 1000
    assert gw.ledger.mints[second.asset_public_key]["supply"] == 1000


def test_revoke_freeze_and_update_land_on_ledger() -> None:
    orch, _, gw, _ = _memory_orch()
    req = IssuanceRequest(
        name="Bar",
        symbol="BAR",
        decimal_precision=9,
        initial_supply=5,
        image_uri="https://img.test/bar.png",
        description="Bar",
        revoke_freeze_authority=True,
        revoke_update_authority=True,
    )

    result = orch.execute(req)

    mint = gw.ledger.mints[result.asset_public_key]
    assert mint["freeze_authority"] is None
    assert mint["metadata"]["update_authority"] is None
    assert mint["mint_authority"] is not None
    assert len(result.handles) == 4


def test_partial_issuance_can_be_resumed_from_failed_step() -> None:
    orch, _, gw, payer = _memory_orch(fail_on_step=3)

    with pytest.raises(GroupSubmissionError) as ei:
        orch.execute(FOO)

    err = ei.value
    assert err.step == 3
    assert err.partial
    asset = err.asset_public_key
    # Groups 1 and 2 stay applied.
    assert gw.ledger.mints[asset]["supply"] == 0
    assert derive_holder_address(owner=payer.public_key, asset=asset) in gw.ledger.holders

    # Operator resumes manually with the preserved identity and URI.
    gw.fail_on_step = None
    remaining = build_groups(FOO, asset, err.content_uri, payer.public_key)[err.step - 1 :]
    for group in remaining:
        gw.submit_and_confirm(group, [])

    assert gw.ledger.mints[asset]["supply"] == 1000
    assert gw.ledger.mints[asset]["mint_authority"] is None


def test_unfunded_payer_fails_at_first_group() -> None:
    payer = Keypair.from_label("broke")
    gw = MemoryLedgerGateway(payer)
    orch = IssuanceOrchestrator(MetadataPublisher(MemoryPublishCapability()), gw, payer)

    with pytest.raises(GroupSubmissionError) as ei:
        orch.execute(FOO)

    assert ei.value.step == 1
    assert "insufficient_funds" in ei.value.reason
    assert gw.ledger.mints == {}
    assert gw.ledger.accounts == {}


def test_concurrent_executes_on_one_orchestrator_are_independent() -> None:
    orch, _, gw, _ = _memory_orch()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: orch.execute(FOO), range(4)))

    assert len({r.asset_public_key for r in results}) == 4
    for r in results:
        assert len(r.handles) == 4
        assert gw.ledger.mints[r.asset_public_key]["supply"] == 1000
    assert len(gw.submitted) == 16
