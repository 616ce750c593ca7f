from __future__ import annotations

import uvicorn
from dotenv import load_dotenv

from gridwalk.config import configure_logging, settings_from_env


def main() -> None:
    load_dotenv(override=False)
    settings = settings_from_env()
    configure_logging(settings)
    # uvicorn exits non-zero if the startup hook fails (e.g. Redis unreachable).
    uvicorn.run("gridwalk.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
