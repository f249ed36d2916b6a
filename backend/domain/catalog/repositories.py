"""
Catalog Domain - Repository Interfaces (Ports).

The engines read catalog data through this interface only. Implementations
return ``None`` for unknown ids; turning a missing reference into a warning
is the engine's job.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .entities import (
    Assembly,
    AssemblyGroup,
    Category,
    Material,
)


class CatalogSnapshotRepository(ABC):
    """Read-only view of the catalog for one computation."""

    @abstractmethod
    def get_assembly(self, assembly_id: str) -> Optional[Assembly]:
        """Get assembly by ID."""
        pass

    @abstractmethod
    def get_material(self, material_id: str) -> Optional[Material]:
        """Get material by ID."""
        pass

    @abstractmethod
    def get_assembly_groups(self, category_id: str) -> List[AssemblyGroup]:
        """Get all assembly groups of a category, ordered by sort order."""
        pass

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        pass

    def category_name(self, category_id: str) -> str:
        """Category display name, falling back to its id."""
        category = self.get_category(category_id)
        return category.name if category else str(category_id)
