# register models in Base.metadata

from medcart.data.models.cart_snapshot import CartSnapshotModel

__all__ = ["CartSnapshotModel"]
