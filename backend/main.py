from __future__ import annotations

from scrummy.application import create_app

app = create_app()
