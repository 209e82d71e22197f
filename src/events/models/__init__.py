from .coupon import Coupon, CouponLimits, CouponUsage, normalize_coupon_code
from .event import Event, LimitRules, Lot, Sector, TicketType
from .order import Order, OrderItem
from .tenant import Tenant, TenantMember
from .ticket import Checkin, Ticket

__all__ = [
    # Tenants
    "Tenant",
    "TenantMember",
    # Catalog
    "Event",
    "LimitRules",
    "Sector",
    "TicketType",
    "Lot",
    # Coupons
    "Coupon",
    "CouponLimits",
    "CouponUsage",
    "normalize_coupon_code",
    # Orders
    "Order",
    "OrderItem",
    # Tickets
    "Ticket",
    "Checkin",
]
