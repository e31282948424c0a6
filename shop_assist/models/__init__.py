from shop_assist.models.family_group import FamilyGroup
from shop_assist.models.family_invitation import FamilyInvitation, InvitationStatus
from shop_assist.models.family_member import FamilyMember, FamilyRole
from shop_assist.models.grocery_list import GroceryListItem
from shop_assist.models.list_activity import ListActivity, ListActivityAction
from shop_assist.models.notification import Notification, NotificationType
from shop_assist.models.product import Product
from shop_assist.models.shared_list import SharedGroceryList, SharedListItem
from shop_assist.models.user import User

__all__ = [
    "FamilyGroup",
    "FamilyInvitation",
    "FamilyMember",
    "FamilyRole",
    "GroceryListItem",
    "InvitationStatus",
    "ListActivity",
    "ListActivityAction",
    "Notification",
    "NotificationType",
    "Product",
    "SharedGroceryList",
    "SharedListItem",
    "User",
]
