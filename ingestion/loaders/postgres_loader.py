"""
Load canonical rows into PostgreSQL with natural-key upsert (idempotency)
"""

from datetime import datetime
from typing import Any, Dict, List, Sequence, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert
from pydantic import BaseModel
from models.base import Base
from core.exceptions import UpsertError
import logging

logger = logging.getLogger(__name__)


class PostgresLoader:
    """
    Load rows into PostgreSQL with idempotent upsert operations.

    Ensures:
    - No duplicate rows on repeated runs (unique natural key)
    - Last write wins on key collision, updated_at refreshed
    - Nothing is committed if any row fails
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @staticmethod
    def build_upsert(
        model: Type[Base],
        values: Dict[str, Any],
        conflict_fields: Sequence[str]
    ):
        """INSERT ... ON CONFLICT (<natural key>) DO UPDATE SET <other columns>"""
        stmt = insert(model).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(conflict_fields),
            set_={
                column: stmt.excluded[column]
                for column in values
                if column not in conflict_fields
            }
        )

    async def upsert(
        self,
        model: Type[Base],
        rows: List[BaseModel],
        conflict_fields: Sequence[str]
    ) -> int:
        """
        Upsert rows one statement at a time, then commit once.

        Args:
            model: Target ORM model
            rows: Validated canonical rows
            conflict_fields: Natural key columns backing the unique constraint

        Returns:
            Number of rows upserted

        Raises:
            UpsertError: a statement or the commit failed; the transaction is rolled back
        """
        if not rows:
            return 0

        table_name = model.__tablename__
        loaded_count = 0

        try:
            for row in rows:
                values = row.dict()
                values["updated_at"] = datetime.utcnow()

                stmt = self.build_upsert(model, values, conflict_fields)
                await self.db.execute(stmt)
                loaded_count += 1

            await self.db.commit()

        except Exception as e:
            await self.db.rollback()
            raise UpsertError(
                f"Upsert into {table_name} failed at row {loaded_count}: {e}",
                context={
                    "table_name": table_name,
                    "conflict_fields": list(conflict_fields),
                    "row_index": loaded_count
                },
                original_exception=e
            )

        logger.info(f"Upserted {loaded_count} rows into {table_name}")
        return loaded_count
