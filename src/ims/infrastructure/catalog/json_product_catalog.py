"""JSON-file-backed implementations of the ProductCatalog port."""

from __future__ import annotations

import json
from pathlib import Path

from ims.domain.repository.product_catalog import ProductCatalog


class JsonProductCatalog(ProductCatalog):
    """Reads ``[{"id": ..., "name": ..., "is_active": true}, ...]`` from disk.

    The file is re-read on every lookup so catalog edits are picked up
    without restarting.
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    # --- ProductCatalog interface ---------------------------------------------

    def is_active_product(self, product_id: str) -> bool:
        for raw in self._load_raw():
            if str(raw["id"]) == product_id:
                return bool(raw.get("is_active", True))
        return False

    # --- Catalog maintenance (used by the CLI) --------------------------------

    def add(self, product_id: str, name: str, is_active: bool = True) -> None:
        records = [raw for raw in self._load_raw() if str(raw["id"]) != product_id]
        records.append({"id": product_id, "name": name, "is_active": is_active})
        self._persist_raw(records)

    def list_all(self) -> list[dict]:
        return self._load_raw()

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, records: list[dict]) -> None:
        self._file_path.write_text(
            json.dumps(records, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")


class StaticProductCatalog(ProductCatalog):
    """Fixed set of active product ids (useful for embedding and tests)."""

    def __init__(self, product_ids: set[str] | list[str] | None = None) -> None:
        self._product_ids = set(product_ids or [])

    def add(self, product_id: str) -> None:
        self._product_ids.add(product_id)

    def deactivate(self, product_id: str) -> None:
        self._product_ids.discard(product_id)

    def is_active_product(self, product_id: str) -> bool:
        return product_id in self._product_ids
