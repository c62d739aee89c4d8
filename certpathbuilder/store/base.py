# certpathbuilder/store/base.py

from typing import Iterable, List


class CertStore:
    """
    Base class for certificate stores. Subclasses implement query() to
    return every certificate matching a selector, in a stable order, and
    raise CertStoreError when the store cannot answer.
    """
    NAME = "cert-store"
    is_local = True

    @property
    def name(self) -> str:
        return self.NAME

    def query(self, selector) -> List:
        """
        Override in subclasses: return list of Certificate matching `selector`.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def sort_stores(stores: Iterable[CertStore]) -> List[CertStore]:
    """
    Return `stores` with local stores first. The sort is stable, so the
    caller's order is kept within each group.
    """
    return sorted(stores, key=lambda store: 0 if store.is_local else 1)
