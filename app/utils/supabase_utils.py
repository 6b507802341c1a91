"""
Supabase utilities for connecting to and interacting with Supabase database.
This module provides a client and constants for working with Supabase.
"""
import os
import logging
from typing import Dict, Optional, Any
from dotenv import load_dotenv
from supabase import create_client, Client

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# Table names
TENANT_PROJECTS_TABLE = "tenant_projects"


class SupabaseClient:
    """
    A wrapper around the Supabase client to provide standardized access
    to the database with proper error handling and connection management.
    """

    _client: Optional[Client] = None

    def __init__(self, supabase_url: Optional[str] = None, supabase_key: Optional[str] = None):
        """Initialize the Supabase client with credentials from environment variables."""
        supabase_url = supabase_url or os.getenv("SUPABASE_URL")
        supabase_key = supabase_key or os.getenv("SUPABASE_KEY")

        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY environment variables must be set")

        self.client = create_client(supabase_url, supabase_key)

    @classmethod
    def get_client(cls) -> Optional["SupabaseClient"]:
        """
        Get a shared client, or None when Supabase is not configured.
        """
        if cls._client is None:
            try:
                cls._client = cls()
            except ValueError as e:
                logger.warning(f"Supabase is not configured: {str(e)}")
                return None
        return cls._client

    def table(self, table_name: str):
        """
        Get a reference to a table in the Supabase database.

        Args:
            table_name: The name of the table to access

        Returns:
            A Supabase query builder for the specified table
        """
        return self.client.table(table_name)

    def select_one(self, table_name: str, column: str, value: Any, columns: str = "*") -> Optional[Dict[str, Any]]:
        """
        Fetch the first row whose column equals a value.

        Returns:
            The row, or None when no row matches
        """
        response = self.table(table_name).select(columns).eq(column, value).limit(1).execute()

        if hasattr(response, "error") and response.error:
            raise Exception(f"Error reading {table_name}: {response.error.message}")

        return response.data[0] if response.data else None

    def upsert(self, table_name: str, data: Dict[str, Any], on_conflict: str) -> Any:
        """
        Insert a row, or replace the row that shares its conflict column.

        Args:
            table_name: The name of the table to write to
            data: Row to write
            on_conflict: Column that identifies an existing row

        Returns:
            The written row as returned by Supabase
        """
        response = self.table(table_name).upsert(data, on_conflict=on_conflict).execute()

        if hasattr(response, "error") and response.error:
            raise Exception(f"Error writing {table_name}: {response.error.message}")

        return response.data
