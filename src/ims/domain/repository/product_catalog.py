"""Port to the product catalog collaborator.

The inventory core only needs to know whether a product exists and is
sellable; everything else about products lives elsewhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ProductCatalog(ABC):

    @abstractmethod
    def is_active_product(self, product_id: str) -> bool:
        """True if the product exists and is active in the catalog."""


class UnconfiguredProductCatalog(ProductCatalog):
    """Stand-in used until a real catalog is wired in."""

    def is_active_product(self, product_id: str) -> bool:
        raise NotImplementedError("No product catalog has been configured")
