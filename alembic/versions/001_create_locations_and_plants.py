"""Create locations and plants tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the location tree (`locations`) and the plant catalog (`plants`).
How:   Portable column types only, so the same revision runs on PostgreSQL
       and SQLite.

Rollback: downgrade() drops both tables (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "name",
            sa.String(255),
            nullable=False,
            comment="Display label of this path segment, e.g. 'Floor 3'",
        ),
        sa.Column(
            "level",
            sa.Integer(),
            nullable=False,
            comment="1 Floor, 2 MainZone, 3 SubZone, 4 AreaType, 5 PreciseSpot",
        ),
        sa.Column(
            "parent_id",
            sa.Integer(),
            nullable=True,
            comment="Node one level up; NULL for floors",
        ),
        sa.PrimaryKeyConstraint("id"),
        # Deleting a node deletes its subtree
        sa.ForeignKeyConstraint(["parent_id"], ["locations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("parent_id", "name", name="uq_locations_parent_name"),
        sa.CheckConstraint("level BETWEEN 1 AND 5", name="ck_locations_level"),
    )
    op.create_index("idx_locations_parent_id", "locations", ["parent_id"])
    op.create_index("idx_locations_level", "locations", ["level"])

    op.create_table(
        "plants",
        sa.Column(
            "id",
            sa.String(100),
            nullable=False,
            comment="Identifier from the spreadsheet, e.g. 'P10_R1'",
        ),
        sa.Column("species", sa.String(255), nullable=False),
        sa.Column(
            "location_id",
            sa.Integer(),
            nullable=True,
            comment="Deepest location node; NULL means unassigned",
        ),
        sa.Column(
            "status",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'Healthy'"),
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        # Losing a location leaves the plant unassigned
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_plants_location_id", "plants", ["location_id"])
    op.create_index("idx_plants_status", "plants", ["status"])


def downgrade() -> None:
    op.drop_index("idx_plants_status", table_name="plants")
    op.drop_index("idx_plants_location_id", table_name="plants")
    op.drop_table("plants")
    op.drop_index("idx_locations_level", table_name="locations")
    op.drop_index("idx_locations_parent_id", table_name="locations")
    op.drop_table("locations")
