"""
Office Plant Tracker Backend — Location Service (Location Tree Store)
=====================================================================

What:  Reads and writes nodes of the office location tree.
Why:   Both the CSV importer and the interactive API need the same tree
       operations: lookup, validated insert, and full-path derivation.
How:   Thin async queries over the `locations` table plus pure helpers that
       derive full paths from an adjacency list held in memory.
Who:   Called by ImportService, QueryService and the location routes.

Full path derivation:
    id │ name      │ parent │ full path
    ───┼───────────┼────────┼──────────────────────────
     1 │ Floor 3   │  —     │ Floor 3
     2 │ Kitchen   │  1     │ Floor 3 > Kitchen
     3 │ Window    │  2     │ Floor 3 > Kitchen > Window

    Paths are never stored. The office tree is small (hundreds of nodes), so
    every read loads the whole table and computes paths in one pass.
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.exceptions import ConflictError, DatabaseError, ValidationError
from plant_tracker.models.location import MAX_LEVEL, MIN_LEVEL, PATH_SEPARATOR, Location
from plant_tracker.schemas.location import LocationResponse, LocationTree

logger = logging.getLogger(__name__)


class NodePath(NamedTuple):
    """Derived position of one node: display path and ancestry by level."""
    full_path: str
    segments: Dict[int, str]


def compute_paths(nodes: Sequence[Location]) -> Dict[int, NodePath]:
    """
    Derive the full path and level→name ancestry map for every node.

    Nodes may arrive in any order. A node whose parent is missing from
    `nodes` is treated as a root.
    """
    by_id = {node.id: node for node in nodes}
    paths: Dict[int, NodePath] = {}

    def resolve(node: Location) -> NodePath:
        cached = paths.get(node.id)
        if cached is not None:
            return cached
        parent = by_id.get(node.parent_id) if node.parent_id is not None else None
        if parent is None:
            path = NodePath(node.name, {node.level: node.name})
        else:
            parent_path = resolve(parent)
            segments = dict(parent_path.segments)
            segments[node.level] = node.name
            path = NodePath(parent_path.full_path + PATH_SEPARATOR + node.name, segments)
        paths[node.id] = path
        return path

    for node in nodes:
        resolve(node)
    return paths


def to_response(node: Location, full_path: str) -> LocationResponse:
    return LocationResponse(
        id=node.id,
        name=node.name,
        level=node.level,
        parent_id=node.parent_id,
        full_path=full_path,
    )


class LocationService:
    """
    Persistent hierarchy of named location nodes.

    Responsibilities:
        - get_all / get_by_id / get_children / get_by_level: plain lookups
        - create(): validated insert used by POST /api/locations
        - insert_node(): unchecked insert used by the CSV materializer
        - get_hierarchy(): nested forest with full paths
        - load_path_cache(): full path → id map seeding an import batch
    """

    async def get_all(self, db: AsyncSession) -> List[Location]:
        """All nodes in insertion (id) order."""
        try:
            result = await db.execute(select(Location).order_by(Location.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error loading locations: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve locations. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_by_id(self, db: AsyncSession, location_id: int) -> Optional[Location]:
        return await db.get(Location, location_id)

    async def get_children(self, db: AsyncSession, parent_id: Optional[int]) -> List[Location]:
        """Direct children of `parent_id`, or the roots when it is None."""
        if parent_id is None:
            condition = Location.parent_id.is_(None)
        else:
            condition = Location.parent_id == parent_id
        result = await db.execute(select(Location).where(condition).order_by(Location.id))
        return list(result.scalars().all())

    async def get_by_level(self, db: AsyncSession, level: int) -> List[Location]:
        result = await db.execute(
            select(Location).where(Location.level == level).order_by(Location.id)
        )
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        name: str,
        level: int,
        parent_id: Optional[int] = None,
    ) -> Location:
        """
        Insert a node after checking it fits the tree.

        Checks, in order:
            1. name is non-empty after trimming
            2. level is within 1..5
            3. the parent exists and sits on a lower level
            4. no sibling already carries the same name

        Raises:
            ValidationError: checks 1-3 failed (→ 400)
            ConflictError: check 4 failed (→ 409)
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError(message="Location name must not be empty", field="name")

        if not MIN_LEVEL <= level <= MAX_LEVEL:
            raise ValidationError(
                message=f"Location level must be between {MIN_LEVEL} and {MAX_LEVEL}",
                field="level",
            )

        if parent_id is not None:
            parent = await self.get_by_id(db, parent_id)
            if parent is None:
                raise ValidationError(
                    message=f"Parent location with ID '{parent_id}' does not exist",
                    field="parentId",
                )
            if level <= parent.level:
                raise ValidationError(
                    message=(
                        f"Location level {level} must be greater than "
                        f"its parent's level {parent.level}"
                    ),
                    field="level",
                )

        siblings = await self.get_children(db, parent_id)
        if any(sibling.name == name for sibling in siblings):
            raise ConflictError(
                message=f"A location named '{name}' already exists at this position",
                context={"name": name, "parent_id": parent_id},
            )

        try:
            node = await self.insert_node(db, name, level, parent_id)
        except IntegrityError:
            raise ConflictError(
                message=f"A location named '{name}' already exists at this position",
                context={"name": name, "parent_id": parent_id},
            )
        logger.info("Location created: %s (id=%d, level=%d)", name, node.id, level)
        return node

    async def insert_node(
        self,
        db: AsyncSession,
        name: str,
        level: int,
        parent_id: Optional[int],
    ) -> Location:
        """Add a node and flush so its id is assigned. No validation."""
        node = Location(name=name, level=level, parent_id=parent_id)
        db.add(node)
        await db.flush()
        return node

    async def full_path(self, db: AsyncSession, node: Location) -> str:
        """Full path of a single node, walking up its ancestors."""
        names = [node.name]
        parent_id = node.parent_id
        while parent_id is not None:
            parent = await self.get_by_id(db, parent_id)
            if parent is None:
                break
            names.append(parent.name)
            parent_id = parent.parent_id
        return PATH_SEPARATOR.join(reversed(names))

    async def get_hierarchy(self, db: AsyncSession) -> List[LocationTree]:
        """
        Build the forest of nodes with nested children.

        Single pass in id order: a parent is always inserted before its
        children, so each node's parent tree already exists when it is reached.
        """
        roots: List[LocationTree] = []
        trees: Dict[int, LocationTree] = {}

        for node in await self.get_all(db):
            parent = trees.get(node.parent_id) if node.parent_id is not None else None
            full_path = (
                parent.full_path + PATH_SEPARATOR + node.name if parent else node.name
            )
            tree = LocationTree(
                id=node.id,
                name=node.name,
                level=node.level,
                parent_id=node.parent_id,
                full_path=full_path,
            )
            trees[node.id] = tree
            if parent:
                parent.children.append(tree)
            else:
                roots.append(tree)

        return roots

    async def load_path_cache(self, db: AsyncSession) -> Dict[str, int]:
        """Full path → node id for every persisted node."""
        paths = compute_paths(await self.get_all(db))
        return {path.full_path: node_id for node_id, path in paths.items()}


# ── Singleton Instance ────────────────────────────────────────────────────
location_service = LocationService()
