# Source-specific data adapters
# Each module knows one planning tool's export format and hands the core a catalog snapshot

from .inventory_planner import InventoryPlannerLoader, LoadedCatalog, extract_variants

__all__ = ["InventoryPlannerLoader", "LoadedCatalog", "extract_variants"]
