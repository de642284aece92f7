"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_by_reference(db: Session, reference: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.reference == reference).first()

    @staticmethod
    def get_by_reference_for_update(db: Session, reference: str) -> Optional[Payment]:
        """Load a payment and hold its row lock until the transaction ends"""
        return (
            db.query(Payment)
            .filter(Payment.reference == reference)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def latest_for_booking(
        db: Session, booking_id: str, status: Optional[str] = None
    ) -> Optional[Payment]:
        query = db.query(Payment).filter(Payment.booking_id == booking_id)
        if status:
            query = query.filter(Payment.status == status)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc()).first()

    @staticmethod
    def has_successful_payment(db: Session, booking_id: str) -> bool:
        return (
            db.query(Payment.id)
            .filter(Payment.booking_id == booking_id, Payment.status == "success")
            .first()
            is not None
        )

    @staticmethod
    def create(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.flush()
        return payment
