"""Readiness check: every table the services touch must answer a trivial select."""
import logging
from typing import Dict, List
from supabase import Client
from postgrest.exceptions import APIError
from app.database.supabase_client import UNDEFINED_TABLE

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("users", "groups", "group_members", "photos")


def check_tables_exist(supabase: Client) -> Dict[str, List[str]]:
    """Return {"missing": [...], "unreachable": [...]} for the required tables."""
    missing: List[str] = []
    unreachable: List[str] = []
    for table in REQUIRED_TABLES:
        try:
            supabase.table(table).select("id").limit(1).execute()
        except APIError as e:
            if e.code == UNDEFINED_TABLE:
                missing.append(table)
            else:
                logger.warning(f"Table check for {table} failed: {e.message}")
                unreachable.append(table)
        except Exception as e:
            logger.warning(f"Table check for {table} failed: {e}")
            unreachable.append(table)
    return {"missing": missing, "unreachable": unreachable}
