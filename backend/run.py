from __future__ import annotations

import logging

import uvicorn

from scrummy.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=logging.getLevelName(settings.effective_log_level).lower(),
        reload=True,
        reload_dirs=["backend"],
    )
