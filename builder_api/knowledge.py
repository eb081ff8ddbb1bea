from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

DEFAULT_KNOWLEDGE_BASE_PATH = Path(__file__).with_name("knowledge_base.json")
KNOWLEDGE_BASE_PATH = Path(os.getenv("KNOWLEDGE_BASE_PATH", str(DEFAULT_KNOWLEDGE_BASE_PATH)))


def load_knowledge_base(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the design knowledge base once; any problem yields an empty object."""
    kb_path = Path(path) if path is not None else KNOWLEDGE_BASE_PATH
    try:
        data = json.loads(kb_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        log.warning(
            "knowledge: %s not found or invalid JSON (%s); proceeding with an empty knowledge base",
            kb_path,
            exc,
        )
        return {}
    if not isinstance(data, dict):
        log.warning("knowledge: %s is not a JSON object; proceeding with an empty knowledge base", kb_path)
        return {}
    log.info("knowledge: loaded %d design guidelines from %s", len(design_guidelines(data)), kb_path)
    return data


def design_guidelines(kb: Dict[str, Any]) -> List[str]:
    items = kb.get("designGuidelines") if isinstance(kb, dict) else None
    if not isinstance(items, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in items]
