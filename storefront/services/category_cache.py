# storefront/services/category_cache.py
import threading
from typing import Tuple

from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CategoryCache:
    """
    Lista kategorii dla filtrow w UI.
    Odswiezana w calosci; czytelnicy dostaja niezmienny snapshot (tuple) bez blokowania,
    lock chroni tylko przed dwoma rownoleglymi odswiezeniami.
    """

    def __init__(self):
        self._snapshot: Tuple[str, ...] = ()
        self._write_lock = threading.Lock()

    def read(self) -> Tuple[str, ...]:
        return self._snapshot

    def refresh(self, repo: ProductRepo) -> Tuple[str, ...]:
        with self._write_lock:
            snapshot = tuple(repo.list_categories())
            self._snapshot = snapshot
        logger.info(f"Category cache refreshed ({len(snapshot)} categories)")
        return snapshot

    def invalidate(self) -> None:
        with self._write_lock:
            self._snapshot = ()
