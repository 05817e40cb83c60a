from app.models.base import TimestampMixin
from app.models.business import Business, Restaurant, User
from app.models.ingredient import Ingredient
from app.models.inventory import InventoryItem
from app.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from app.models.waste import WasteLogEntry

__all__ = [
    "TimestampMixin",
    "Business",
    "Restaurant",
    "User",
    "Ingredient",
    "InventoryItem",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "WasteLogEntry",
]
