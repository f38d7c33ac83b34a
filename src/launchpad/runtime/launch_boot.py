# src/launchpad/runtime/launch_boot.py

from __future__ import annotations

from typing import Optional

from launchpad.crypto.keys import Keypair, load_payer_keypair
from launchpad.runtime.gateway import SigningSubmissionGateway
from launchpad.runtime.launch_config import LaunchConfig, explorer_tx_url, load_launch_config
from launchpad.runtime.memory_ledger import MemoryLedgerGateway
from launchpad.runtime.orchestrator import IssuanceOrchestrator
from launchpad.storage.ipfs import IpfsPublishCapability
from launchpad.storage.memory_store import MemoryPublishCapability
from launchpad.storage.metadata import MetadataPublisher, PublishCapability


def build_publisher(cfg: LaunchConfig) -> MetadataPublisher:
    capability: PublishCapability
    if cfg.uses_memory_backends:
        capability = MemoryPublishCapability()
    else:
        capability = IpfsPublishCapability(
            api_base=cfg.ipfs_api_base,
            gateway_base=cfg.ipfs_gateway_base,
            timeout_s=float(cfg.publish_timeout_s),
        )
    return MetadataPublisher(capability)


def build_gateway(cfg: LaunchConfig, payer: Optional[Keypair]) -> Optional[SigningSubmissionGateway]:
    """Dev mode gets an in-memory ledger.

    Other modes return None: a network gateway is supplied by the embedding
    application, since signing for a live network happens in the operator's
    wallet rather than in this process.
    """
    if cfg.uses_memory_backends and payer is not None:
        return MemoryLedgerGateway(payer, airdrop_lamports=int(cfg.dev_airdrop_lamports))
    return None


def _payer_for_gateway(gateway: SigningSubmissionGateway, payer: Optional[Keypair]) -> Keypair:
    """Pick the payer identity for an attached gateway, or refuse to boot.

    Groups name the payer as fee payer, so it must be the gateway's own fee
    payer. In-process gateways that hold that key expose it as `.payer`.
    """
    expected = str(gateway.fee_payer() or "").strip()
    if not expected:
        raise RuntimeError("attached gateway reports no fee payer")
    if payer is None:
        held = getattr(gateway, "payer", None)
        if isinstance(held, Keypair) and held.public_key == expected:
            return held
        raise RuntimeError(f"no signing identity for gateway fee payer {expected}; set LAUNCHPAD_PAYER_SECRET")
    if payer.public_key != expected:
        raise RuntimeError(f"configured payer {payer.public_key} is not the gateway fee payer {expected}")
    return payer


def build_orchestrator(
    cfg: Optional[LaunchConfig] = None,
    *,
    gateway: Optional[SigningSubmissionGateway] = None,
    payer: Optional[Keypair] = None,
) -> IssuanceOrchestrator:
    c = cfg or load_launch_config()
    p = payer or load_payer_keypair(c.payer_secret)
    if gateway is not None:
        p = _payer_for_gateway(gateway, p)
        g: Optional[SigningSubmissionGateway] = gateway
    else:
        if p is None and c.uses_memory_backends:
            # Dev mode runs without a wallet: use a throwaway identity.
            p = Keypair.generate()
        g = build_gateway(c, p)
    if g is None:
        raise RuntimeError("no ledger gateway configured; attach one or run with LAUNCHPAD_MODE=dev")
    return IssuanceOrchestrator(
        build_publisher(c),
        g,
        p,
        explorer=lambda handle: explorer_tx_url(handle, c),
    )
