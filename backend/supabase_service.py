"""
Supabase data access for projects, clients and developers.

Read-only fetchers over the Spanish-named tables (proyectos, clientes,
desarrolladores).  These rows are not merged into the in-memory
ProjectRepository; they are served as-is for screens that read the database
directly.

A fetch never raises: configuration problems and client errors are logged and
returned in FetchResult.error so the caller can show them next to an empty list.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)

SUPABASE_URL = os.environ.get('SUPABASE_URL')
SUPABASE_KEY = os.environ.get('SUPABASE_SERVICE_KEY')
DB_AVAILABLE = bool(SUPABASE_URL and SUPABASE_KEY)

TABLES = ("proyectos", "clientes", "desarrolladores")

# Lazy-init Supabase client
_supabase_client = None


@dataclass
class FetchResult:
    rows: list[dict] = field(default_factory=list)
    error: Optional[str] = None


def get_supabase():
    """Lazy-initialize the Supabase client.  Returns None when not configured."""
    global _supabase_client
    if _supabase_client is None and DB_AVAILABLE:
        try:
            from supabase import create_client
            _supabase_client = create_client(
                SUPABASE_URL.strip(),
                SUPABASE_KEY.strip()
            )
        except Exception as e:
            logger.warning(f"Supabase client init failed: {e}")
    return _supabase_client


async def fetch_table(supabase: Any, table: str) -> FetchResult:
    """select * from table order by created_at desc."""
    if table not in TABLES:
        return FetchResult(error=f"Unknown table: {table}")
    if supabase is None:
        return FetchResult(error="Supabase is not configured")
    try:
        result = (
            supabase.table(table)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        rows = result.data or []
        logger.debug(f"Fetched {len(rows)} rows from {table}")
        return FetchResult(rows=rows)
    except Exception as e:
        logger.warning("fetch_table(%s): %s", table, e)
        return FetchResult(error=str(e) or "Error desconocido")


async def fetch_proyectos(supabase: Any) -> FetchResult:
    return await fetch_table(supabase, "proyectos")


async def fetch_clientes(supabase: Any) -> FetchResult:
    return await fetch_table(supabase, "clientes")


async def fetch_desarrolladores(supabase: Any) -> FetchResult:
    return await fetch_table(supabase, "desarrolladores")


FETCHERS = {
    "proyectos": fetch_proyectos,
    "clientes": fetch_clientes,
    "desarrolladores": fetch_desarrolladores,
}
