"""floor plan and reservations

Revision ID: 3c1f0a9d52e4
Revises: 
Create Date: 2026-10-19 09:12:44.318201

"""
from pathlib import Path
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d52e4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    project_root = Path(__file__).resolve().parents[2]
    sql_dir = project_root / "sql"

    for filename in ("010_floor_schema.sql", "020_reservation_schema.sql"):
        op.execute((sql_dir / filename).read_text())


def downgrade() -> None:
    op.drop_index("reservation_restaurant_date_idx", table_name="reservation", schema="public")
    op.drop_table("reservation", schema="public")
    op.drop_table("restaurant_table", schema="public")
    op.drop_table("restaurant_zone", schema="public")
    op.drop_table("restaurant_config", schema="public")
