"""
APIs REST del back office
"""
from .auth import bp as auth_bp
from .users import bp as users_bp
from .relations import bp as relations_bp
from .boxes import bp as boxes_bp
from .settings import bp as settings_bp
from .notifications import bp as notifications_bp
from .audit_logs import bp as audit_logs_bp
from .vouchers import bp as vouchers_bp
from .bookings import bp as bookings_bp
from .visas import bp as visas_bp
from .subscriptions import bp as subscriptions_bp
from .segments import bp as segments_bp
from .reports import bp as reports_bp
from .dashboard import bp as dashboard_bp
from .smart_entry import bp as smart_entry_bp
from .documents import bp as documents_bp
from .flight_extras import bp as flight_extras_bp
from .profit_sharing import bp as profit_sharing_bp

__all__ = [
    "auth_bp",
    "users_bp",
    "relations_bp",
    "boxes_bp",
    "settings_bp",
    "notifications_bp",
    "audit_logs_bp",
    "vouchers_bp",
    "bookings_bp",
    "visas_bp",
    "subscriptions_bp",
    "segments_bp",
    "reports_bp",
    "dashboard_bp",
    "smart_entry_bp",
    "documents_bp",
    "flight_extras_bp",
    "profit_sharing_bp",
]
