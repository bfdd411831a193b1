from fastapi import APIRouter

from app.api.v1.endpoints import orders, components, work_orders, instances, changes

api_router = APIRouter()
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(components.router, prefix="/components", tags=["component-registry"])
api_router.include_router(work_orders.router, prefix="/work-orders", tags=["work-orders"])
api_router.include_router(instances.router, prefix="/instances", tags=["instances"])
api_router.include_router(changes.router, prefix="/changes", tags=["changes"])
