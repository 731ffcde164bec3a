"""Category domain service.

Categories are read-only input to the ledger: operations point at them and
filters expand them to their descendants. This service covers the small
amount of writing needed to seed a tree and the shadow categories that
balance adjustments are booked against.
"""

from typing import Optional

from ledgerkeep.database.base import Database
from ledgerkeep.domain.entities import CATEGORY_TYPES, EXPENSE, Category as CategoryEntity
from ledgerkeep.domain.errors import NotFoundError, ValidationError

PATH_SEPARATOR = " > "

SHADOW_CATEGORY_NAMES = {
    "expense": "Balance adjustment (expense)",
    "income": "Balance adjustment (income)",
}


def _require_known_type(category_type: str) -> None:
    if category_type not in CATEGORY_TYPES:
        raise ValidationError(f"Unknown category type '{category_type}'")


class CategoryService:
    """Service for seeding and reading the category tree."""

    def __init__(self, db: Database):
        self.db = db

    def create_category(
        self,
        name: str,
        category_type: str = EXPENSE,
        parent_path: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> int:
        """Create a category, optionally below an existing one.

        Args:
            name: Category name
            category_type: "expense" or "income"; children share their parent's type
            parent_path: Path of the parent, e.g. "Food > Restaurants"
            icon: Optional icon name

        Returns:
            Category ID

        Raises:
            ValidationError: If the type is unknown or differs from the parent's
            NotFoundError: If the parent path does not resolve
        """
        _require_known_type(category_type)

        parent_id = None
        if parent_path is not None:
            parent = self.db.get_category_by_path(parent_path)
            if parent is None:
                raise NotFoundError(f"Parent category '{parent_path}' not found")
            if parent.category_type != category_type:
                raise ValidationError(
                    f"Category type '{category_type}' does not match parent type '{parent.category_type}'"
                )
            parent_id = parent.id

        return self.db.create_category(name=name, category_type=category_type, parent_id=parent_id, icon=icon)

    def get_category(self, category_id: int) -> Optional[CategoryEntity]:
        return self.db.get_category(category_id)

    def get_category_by_path(self, path: str) -> Optional[CategoryEntity]:
        """Resolve a " > " separated path, or return None."""
        return self.db.get_category_by_path(path)

    def list_categories(self, parent_id: Optional[int] = None) -> list[CategoryEntity]:
        """Direct children of ``parent_id``, or the roots when it is None."""
        return self.db.list_categories(parent_id=parent_id)

    def get_category_tree(self, include_shadow: bool = False) -> list[dict]:
        """Nest every category under its parent.

        Args:
            include_shadow: Whether the balance-adjustment categories are shown

        Returns:
            Root nodes as dicts with id, name, category_type and children
        """
        categories = self.db.list_categories(all_levels=True)
        nodes = {
            cat.id: {"id": cat.id, "name": cat.name, "category_type": cat.category_type, "children": []}
            for cat in categories
            if include_shadow or not cat.is_shadow
        }

        roots = []
        for cat in categories:
            node = nodes.get(cat.id)
            if node is None:
                continue
            if cat.parent_id in nodes:
                nodes[cat.parent_id]["children"].append(node)
            else:
                roots.append(node)
        return roots

    def format_category_path(self, category_id: int) -> str:
        """Full path of a category, e.g. "Food > Restaurants"; empty if unknown."""
        by_id = {cat.id: cat for cat in self.db.list_categories(all_levels=True)}
        names = []
        current = by_id.get(category_id)
        while current is not None:
            names.append(current.name)
            current = by_id.get(current.parent_id)
        return PATH_SEPARATOR.join(reversed(names))

    def get_or_create_shadow_category(self, category_type: str) -> CategoryEntity:
        """Return the system category used for balance adjustments of a type."""
        _require_known_type(category_type)

        shadow = self.db.get_shadow_category(category_type)
        if shadow is None:
            category_id = self.db.create_category(
                name=SHADOW_CATEGORY_NAMES[category_type],
                category_type=category_type,
                is_shadow=True,
            )
            shadow = self.db.get_category(category_id)
        return shadow
