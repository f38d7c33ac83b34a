from __future__ import annotations

"""Issuance orchestrator.

Drives one issuance end to end:

  validate -> publish metadata -> new asset identity -> build groups
           -> submit + confirm each group in order -> result

Policy:
  - Strictly sequential. A group is submitted only after the previous
    group's submit_and_confirm() has returned; later groups reference
    accounts that exist only once earlier groups are confirmed.
  - No automatic retry and no compensation. A failure at group i leaves
    groups 1..i-1 applied on the ledger. The error carries the step, the
    asset public key and the handles already confirmed so an operator can
    resume from step i or abandon the asset.
  - Each remote call blocks; any timeout belongs to the capability making
    that call, never to the sequence as a whole.
"""

import logging
from typing import Callable, List, Optional

from launchpad.crypto.keys import Keypair
from launchpad.ledger.builder import build_groups
from launchpad.ledger.operations import OperationGroup
from launchpad.runtime.errors import (
    GroupSubmissionError,
    IssuanceError,
    MetadataPublishError,
    ValidationError,
    group_stage,
)
from launchpad.runtime.gateway import SigningSubmissionGateway
from launchpad.runtime.issuance_types import (
    STATE_CONFIRMING,
    STATE_PUBLISHING,
    STATE_SUBMITTING,
    STATE_SUCCEEDED,
    IssuanceRequest,
    IssuanceResult,
    IssuanceRun,
)
from launchpad.runtime.metrics import inc_counter
from launchpad.runtime.run_logging import log_event
from launchpad.storage.metadata import MetadataDescriptor, MetadataPublisher

log = logging.getLogger("launchpad.orchestrator")


class IssuanceOrchestrator:
    """One instance may serve concurrent execute() calls.

    Each call tracks its progress in its own IssuanceRun. last_run points at
    the run most recently started on this instance and is for diagnostics
    only: with concurrent callers it may belong to another request. Callers
    read their outcome from the returned result or the raised error.
    """

    def __init__(
        self,
        publisher: MetadataPublisher,
        gateway: SigningSubmissionGateway,
        payer: Optional[Keypair],
        *,
        asset_factory: Callable[[], Keypair] = Keypair.generate,
        explorer: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.publisher = publisher
        self.gateway = gateway
        self.payer = payer
        self.asset_factory = asset_factory
        self.explorer = explorer
        self.last_run: Optional[IssuanceRun] = None

    def _fail(self, run: IssuanceRun, err: IssuanceError) -> IssuanceError:
        run.fail(err.stage, str(err))
        inc_counter(f"issuance_failed_{err.stage.split(':', 1)[0]}")
        log_event(
            log,
            "issuance_failed",
            level=logging.WARNING,
            stage=err.stage,
            code=err.code,
            reason=err.reason,
            asset=run.asset_public_key,
            confirmed=len(run.handles),
        )
        return err

    def _preflight(self, request: IssuanceRequest) -> Keypair:
        if self.payer is None:
            raise ValidationError("no_signer", "a signing identity is required")
        request.validate()
        return self.payer

    def execute(self, request: IssuanceRequest) -> IssuanceResult:
        run = IssuanceRun()
        self.last_run = run
        inc_counter("issuance_started")

        try:
            payer = self._preflight(request)
        except ValidationError as e:
            raise self._fail(run, e)

        log_event(log, "issuance_started", payer=payer.public_key, request=request.to_json())

        run.move(STATE_PUBLISHING)
        try:
            content_uri = self.publisher.publish(MetadataDescriptor.from_request(request))
        except MetadataPublishError as e:
            raise self._fail(run, e)
        run.content_uri = content_uri

        # Fresh identity per call; never reused across executions.
        asset = self.asset_factory()
        run.asset_public_key = asset.public_key

        groups: List[OperationGroup] = build_groups(request, asset.public_key, content_uri, payer.public_key)

        for group in groups:
            run.move(STATE_SUBMITTING, group.step)
            co_signers = [asset] if asset.public_key in group.required_signers else []
            try:
                handle = self.gateway.submit_and_confirm(group, co_signers)
                if not str(handle or "").strip():
                    raise RuntimeError("gateway returned an empty submission handle")
            except Exception as e:
                err = GroupSubmissionError(
                    "group_submission_failed",
                    str(e) or type(e).__name__,
                    stage=group_stage(group.step),
                    details={"label": group.label},
                    step=group.step,
                    asset_public_key=asset.public_key,
                    completed_handles=list(run.handles),
                    content_uri=content_uri,
                )
                raise self._fail(run, err) from e

            run.move(STATE_CONFIRMING, group.step)
            run.handles.append(str(handle))
            inc_counter("groups_confirmed")
            log_event(log, "group_confirmed", step=group.step, label=group.label, asset=asset.public_key, handle=handle)

        run.move(STATE_SUCCEEDED, run.step)
        inc_counter("issuance_succeeded")

        final = run.handles[-1]
        result = IssuanceResult(
            submission_handle=final,
            asset_public_key=asset.public_key,
            content_uri=content_uri,
            handles=tuple(run.handles),
            explorer_url=self.explorer(final) if self.explorer is not None else "",
        )
        log_event(log, "issuance_succeeded", asset=asset.public_key, handle=final, groups=len(run.handles))
        return result
