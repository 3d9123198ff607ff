"""Load curated catalog entries and compute their embeddings.

Usage:
    python -m app.scripts.generate_embeddings --catalog knowledge.json
    python -m app.scripts.generate_embeddings --all
"""

import argparse
import asyncio
import json
from pathlib import Path

from app.ai.embeddings import get_embeddings
from app.core.config import get_settings
from app.core.database import close_db, get_db_session, init_db
from app.core.logging import configure_logging, get_logger
from app.schemas.knowledge import KnowledgeContentCreate
from app.services import knowledge_service

logger = get_logger(__name__)


def load_catalog(path: Path) -> list[KnowledgeContentCreate]:
    """Read a JSON list (or ``{"items": [...]}``) of catalog entries."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("items")
    if not isinstance(payload, list):
        raise ValueError("catalog JSON must be a list or {items: list}")
    return [KnowledgeContentCreate.model_validate(item) for item in payload]


async def run(catalog: Path | None, refresh_all: bool) -> int:
    await init_db()
    try:
        async with get_db_session() as db:
            if catalog is not None:
                await knowledge_service.upsert_content(db, load_catalog(catalog))
            return await knowledge_service.refresh_embeddings(
                db, get_embeddings(), only_missing=not refresh_all
            )
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate knowledge catalog embeddings")
    parser.add_argument("--catalog", type=Path, help="JSON file of catalog entries to upsert first")
    parser.add_argument("--all", action="store_true", help="re-embed every item, not just missing ones")
    args = parser.parse_args()

    configure_logging(debug=get_settings().DEBUG)
    count = asyncio.run(run(args.catalog, args.all))
    logger.info("Embedding generation finished", updated=count)


if __name__ == "__main__":
    main()
