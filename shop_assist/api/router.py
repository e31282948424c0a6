from fastapi import APIRouter

from shop_assist.api.auth import router as auth_router
from shop_assist.api.families import router as families_router
from shop_assist.api.grocery_list import router as grocery_list_router
from shop_assist.api.invitations import router as invitations_router
from shop_assist.api.notifications import router as notifications_router
from shop_assist.api.products import router as products_router
from shop_assist.api.shared_lists import router as shared_lists_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(families_router)
api_router.include_router(grocery_list_router)
api_router.include_router(invitations_router)
api_router.include_router(notifications_router)
api_router.include_router(products_router)
api_router.include_router(shared_lists_router)
