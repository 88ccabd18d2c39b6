from fastapi import APIRouter

from stockflow.api.v1.endpoints import ledger, lots, purchase_orders, stock

api_router = APIRouter()

api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["Purchasing"])
api_router.include_router(lots.router, prefix="/lots", tags=["Inventory"])
api_router.include_router(stock.router, prefix="/stock", tags=["Inventory"])
api_router.include_router(ledger.router, prefix="/ledger", tags=["Accounting"])
