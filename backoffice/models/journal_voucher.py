"""
Modelo: Comprobante contable
Cabecera de un asiento (recibo, pago, gasto, asiento manual, etc)
"""
from datetime import datetime
from ..db import db


class JournalVoucher(db.Model):
    __tablename__ = "journal_vouchers"

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(40), nullable=False, index=True)
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    currency = db.Column(db.String(3), nullable=False, default="USD")
    # USD | IQD
    exchange_rate = db.Column(db.Float, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    voucher_type = db.Column(db.String(60), nullable=False, default="journal_voucher")
    # journal_from_standard_receipt | journal_from_payment | journal_from_expense |
    # journal_from_distributed_receipt | journal_voucher | booking | visa | subscription ...

    # Origen del asiento (booking, visa, subscription, ...) para poder anularlo en bloque
    source_type = db.Column(db.String(40), nullable=True, index=True)
    source_id = db.Column(db.String(40), nullable=True, index=True)

    created_by = db.Column(db.String(120), nullable=True)
    officer = db.Column(db.String(120), nullable=True)
    is_audited = db.Column(db.Boolean, nullable=False, default=False)
    is_confirmed = db.Column(db.Boolean, nullable=False, default=False)

    # Datos del formulario tal como se ingresaron
    original_data = db.Column(db.JSON, nullable=True)
    meta = db.Column(db.JSON, nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime, nullable=True)
    deleted_by = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    entries = db.relationship(
        "JournalEntry",
        backref="voucher",
        cascade="all, delete-orphan",
        order_by="JournalEntry.id",
    )

    @property
    def total_debit(self):
        return round(sum(e.debit for e in self.entries), 2)

    @property
    def total_credit(self):
        return round(sum(e.credit for e in self.entries), 2)

    def to_dict(self, include_entries=True):
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "date": self.date.isoformat() if self.date else None,
            "currency": self.currency,
            "exchange_rate": self.exchange_rate,
            "notes": self.notes,
            "voucher_type": self.voucher_type,
            "source_type": self.source_type,
            "source_id": self.source_id,
            "created_by": self.created_by,
            "officer": self.officer,
            "is_audited": self.is_audited,
            "is_confirmed": self.is_confirmed,
            "original_data": self.original_data,
            "meta": self.meta,
            "is_deleted": self.is_deleted,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
            "deleted_by": self.deleted_by,
            "total_debit": self.total_debit,
            "total_credit": self.total_credit,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_entries:
            data["entries"] = [e.to_dict() for e in self.entries]
        return data
