"""
Record store for the tables of a single project.

Rows have no stored identity of their own: a row is addressed by its position
in the table's row list. Deleting a row shifts every later row down by one, so
callers must re-resolve positions they obtained before a delete.
"""

import logging
from typing import Any, Dict, List, Optional

from app.core.errors import IndexOutOfRange, NotFound, ValidationError
from app.models.schemas import (
    Column,
    Project,
    RLSPolicy,
    RLSPolicyCreate,
    Table,
    new_id,
    utc_now,
)
from app.services import schema_model

logger = logging.getLogger(__name__)


class RecordStore:
    """Schema-enforcing CRUD over the tables and rows of one project."""

    def __init__(self, project: Project):
        """
        Initialize the record store.

        Args:
            project: Project whose tables are read and mutated in place
        """
        self.project = project

    # ===== Table Methods =====

    def get_table(self, table_id: str) -> Table:
        for table in self.project.tables:
            if table.id == table_id:
                return table
        raise NotFound(f"Table {table_id} not found in project {self.project.id}")

    def create_table(self, name: str, columns: List[Column]) -> Table:
        """
        Create an empty table.

        Columns with a blank name are dropped. At most one column may be a
        generated (auto-increment primary key) column. Defaults must coerce to
        their column's type.

        Args:
            name: Table name, must not be blank
            columns: Ordered column definitions

        Returns:
            The stored table
        """
        if not name or not name.strip():
            raise ValidationError("Table name must not be empty")

        kept = [column.model_copy(deep=True) for column in columns if column.name.strip()]
        for column in kept:
            column.name = column.name.strip()

        names = [column.name for column in kept]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValidationError(
                f"Duplicate column name: {duplicates[0]}", column=duplicates[0]
            )

        generated = [column.name for column in kept if column.is_generated]
        if len(generated) > 1:
            raise ValidationError(
                "Only one column may be an auto-increment primary key",
                column=generated[1],
            )

        for column in kept:
            if column.is_generated or schema_model.is_absent(column.default_value):
                continue
            _, ok = schema_model.validate(column, column.default_value)
            if not ok:
                raise ValidationError(
                    f"Default value {column.default_value!r} is not a valid {column.type}",
                    column=column.name,
                )

        now = utc_now()
        table = Table(
            id=new_id("table"),
            name=name.strip(),
            project_id=self.project.id,
            columns=kept,
            created_at=now,
            updated_at=now,
        )
        self.project.tables.append(table)
        logger.info(f"Created table {table.name} ({table.id}) in project {self.project.id}")
        return table

    def delete_table(self, table_id: str) -> bool:
        """
        Delete a table and all of its rows.

        Returns:
            True if a table was removed, False if it was already absent
        """
        remaining = [table for table in self.project.tables if table.id != table_id]
        if len(remaining) == len(self.project.tables):
            return False
        self.project.tables = remaining
        logger.info(f"Deleted table {table_id} from project {self.project.id}")
        return True

    def toggle_rls(self, table_id: str, enabled: bool) -> Table:
        table = self.get_table(table_id)
        table.rls_enabled = enabled
        table.updated_at = utc_now()
        return table

    # ===== Row Methods =====

    def add_row(self, table_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a payload and append it as a new row.

        Values for the generated column are never taken from the payload; the
        table's serial counter supplies them.

        Args:
            table_id: Target table
            payload: Column name to raw value

        Returns:
            A copy of the stored row, including the assigned serial value
        """
        table = self.get_table(table_id)
        self._reject_unknown_columns(table, payload)

        row: Dict[str, Any] = {}
        for column in table.columns:
            if column.is_generated:
                continue
            row[column.name] = self._coerce(column, payload.get(column.name))

        self._check_constraints(table, row, skip_index=None)

        generated = self._generated_column(table)
        if generated is not None:
            row[generated.name] = table.next_serial
            table.next_serial += 1

        table.rows.append({column.name: row.get(column.name) for column in table.columns})
        self._touch(table)
        return dict(table.rows[-1])

    def update_row(
        self, table_id: str, row_index: int, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Merge validated fields onto the row at ``row_index``.

        Generated values are kept as they are. The row keeps its position.
        """
        table = self.get_table(table_id)
        self._check_index(table, row_index)
        self._reject_unknown_columns(table, payload)

        row = dict(table.rows[row_index])
        for column in table.columns:
            if column.is_generated or column.name not in payload:
                continue
            row[column.name] = self._coerce(column, payload[column.name])

        self._check_constraints(table, row, skip_index=row_index)

        table.rows[row_index] = row
        self._touch(table)
        return dict(row)

    def delete_row(self, table_id: str, row_index: int) -> Dict[str, Any]:
        """
        Remove the row at ``row_index``.

        Returns:
            The removed row
        """
        table = self.get_table(table_id)
        self._check_index(table, row_index)
        removed = table.rows.pop(row_index)
        self._touch(table)
        return removed

    # ===== Policy Methods =====

    def create_policy(self, table_id: str, policy: RLSPolicyCreate) -> RLSPolicy:
        table = self.get_table(table_id)
        stored = RLSPolicy(id=new_id("policy"), created_at=utc_now(), **policy.model_dump())
        table.policies.append(stored)
        table.updated_at = utc_now()
        return stored

    def toggle_policy(self, table_id: str, policy_id: str, enabled: bool) -> RLSPolicy:
        table = self.get_table(table_id)
        for policy in table.policies:
            if policy.id == policy_id:
                policy.enabled = enabled
                table.updated_at = utc_now()
                return policy
        raise NotFound(f"Policy {policy_id} not found on table {table_id}")

    # ===== Helpers =====

    @staticmethod
    def _generated_column(table: Table) -> Optional[Column]:
        for column in table.columns:
            if column.is_generated:
                return column
        return None

    @staticmethod
    def _coerce(column: Column, raw_value: Any) -> Any:
        value, ok = schema_model.validate(column, raw_value)
        if not ok:
            raise ValidationError(
                f"Invalid value {raw_value!r} for {column.type} column {column.name}",
                column=column.name,
            )
        return value

    @staticmethod
    def _reject_unknown_columns(table: Table, payload: Dict[str, Any]) -> None:
        known = {column.name for column in table.columns}
        for key in payload:
            if key not in known:
                raise ValidationError(f"Unknown column {key}", column=key)

    @staticmethod
    def _check_index(table: Table, row_index: int) -> None:
        if not 0 <= row_index < len(table.rows):
            raise IndexOutOfRange(row_index, len(table.rows))

    @staticmethod
    def _check_constraints(
        table: Table, row: Dict[str, Any], skip_index: Optional[int]
    ) -> None:
        for column in table.columns:
            value = row.get(column.name)
            if not schema_model.is_complete(column, value):
                raise ValidationError(f"Column {column.name} is required", column=column.name)

            if column.is_generated or not (column.unique or column.primary_key):
                continue
            if schema_model.is_absent(value):
                continue
            for index, existing in enumerate(table.rows):
                if index != skip_index and existing.get(column.name) == value:
                    raise ValidationError(
                        f"Duplicate value {value!r} for unique column {column.name}",
                        column=column.name,
                    )

    def _touch(self, table: Table) -> None:
        table.row_count = len(table.rows)
        table.updated_at = utc_now()
