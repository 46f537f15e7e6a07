from __future__ import annotations

import json
from typing import Any


def format_sse(data: dict[str, Any]) -> str:
    payload = json.dumps(data, ensure_ascii=False)
    return f"data: {payload}\n\n"
