"""
Modelos de base de datos
Back office de agencia de viajes
"""
from .relation import Relation
from .box import Box
from .user import User
from .journal_voucher import JournalVoucher
from .journal_entry import JournalEntry
from .deleted_voucher import DeletedVoucher
from .voucher_sequence import VoucherSequence
from .booking import Booking
from .booking_passenger import BookingPassenger
from .ticket_operation import TicketOperation
from .visa_booking import VisaBooking
from .visa_passenger import VisaPassenger
from .subscription import Subscription
from .subscription_installment import SubscriptionInstallment
from .installment_payment import InstallmentPayment
from .segment_entry import SegmentEntry
from .flight_extra import FlightExtra
from .monthly_profit import MonthlyProfit
from .profit_share import ProfitShare
from .notification import Notification
from .audit_log import AuditLog
from .app_settings import AppSettings

__all__ = [
    "Relation",
    "Box",
    "User",
    "JournalVoucher",
    "JournalEntry",
    "DeletedVoucher",
    "VoucherSequence",
    "Booking",
    "BookingPassenger",
    "TicketOperation",
    "VisaBooking",
    "VisaPassenger",
    "Subscription",
    "SubscriptionInstallment",
    "InstallmentPayment",
    "SegmentEntry",
    "FlightExtra",
    "MonthlyProfit",
    "ProfitShare",
    "Notification",
    "AuditLog",
    "AppSettings",
]
