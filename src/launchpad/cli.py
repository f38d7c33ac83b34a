from __future__ import annotations

import argparse
import json
import sys
from typing import List

from launchpad.env import load_dotenv_once
from launchpad.runtime.errors import IssuanceError, ValidationError
from launchpad.runtime.issuance_types import IssuanceRequest


def _parse_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Issue a new fungible token")
    ap.add_argument("--name", required=True)
    ap.add_argument("--symbol", required=True)
    ap.add_argument("--decimals", type=int, default=6)
    ap.add_argument("--supply", dest="initial_supply", type=int, default=1)
    ap.add_argument("--image-url", dest="image_url", required=True)
    ap.add_argument("--description", required=True)
    ap.add_argument("--revoke-freeze", action="store_true")
    ap.add_argument("--revoke-mint", action="store_true")
    ap.add_argument("--revoke-update", action="store_true")
    ap.add_argument("--config", dest="config_path", default=None, help="JSON launch config file")
    return ap.parse_args(argv)


def main(argv: List[str]) -> int:
    args = _parse_args(argv)
    load_dotenv_once()

    from launchpad.api.structured_logging import configure_structured_logging
    from launchpad.runtime.launch_boot import build_orchestrator
    from launchpad.runtime.launch_config import load_launch_config

    try:
        cfg = load_launch_config(config_path=args.config_path)
    except ValueError as e:
        print(f"ERROR: bad config: {e}", file=sys.stderr)
        return 2
    configure_structured_logging(cfg.log_level)

    try:
        orch = build_orchestrator(cfg)
    except (RuntimeError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    request = IssuanceRequest(
        name=args.name,
        symbol=args.symbol,
        decimal_precision=int(args.decimals),
        initial_supply=int(args.initial_supply),
        image_uri=args.image_url,
        description=args.description,
        revoke_freeze_authority=bool(args.revoke_freeze),
        revoke_mint_authority=bool(args.revoke_mint),
        revoke_update_authority=bool(args.revoke_update),
    )

    try:
        result = orch.execute(request)
    except IssuanceError as e:
        print(json.dumps({"ok": False, "error": e.to_json()}, indent=2))
        return 2 if isinstance(e, ValidationError) else 1

    out = result.to_json()
    out["ok"] = True
    print(json.dumps(out, indent=2))
    return 0


def entrypoint() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    entrypoint()
