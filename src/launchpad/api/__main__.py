# src/launchpad/api/__main__.py
from __future__ import annotations

import uvicorn

from launchpad.env import load_dotenv_once


def main() -> None:
    # Load .env early so LAUNCHPAD_* vars exist before anything reads them.
    load_dotenv_once()

    # Import after dotenv load (prevents "config read before env" surprises)
    from launchpad.api.app import create_app
    from launchpad.api.structured_logging import configure_structured_logging
    from launchpad.runtime.launch_config import load_launch_config

    cfg = load_launch_config()
    configure_structured_logging(cfg.log_level)

    uvicorn.run(create_app(cfg=cfg), host=cfg.api_host, port=int(cfg.api_port), log_level="info")


if __name__ == "__main__":
    main()
