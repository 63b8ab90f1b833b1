"""Category taxonomy providers."""

from src.providers.taxonomy.store_taxonomy import StoreCategoryTaxonomy

__all__ = ["StoreCategoryTaxonomy"]
