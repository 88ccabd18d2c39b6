from stockflow.models.reference import LedgerAccount, Product  # noqa: F401
from stockflow.models.users import AppUser  # noqa: F401
from stockflow.models.number_range import SysNumberRange  # noqa: F401
from stockflow.models.order_status import OrderStatus  # noqa: F401

# --- Order aggregate ---
from stockflow.models.purchase_order import PurchaseOrder, PurchaseOrderItem  # noqa: F401

# --- Inventory layer ---
from stockflow.models.lot import Lot  # noqa: F401
from stockflow.models.stock_balance import StockBalance  # noqa: F401

# --- Financial layer ---
from stockflow.models.ledger_entry import LedgerEntry  # noqa: F401
