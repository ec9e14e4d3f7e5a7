import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func
from sqlalchemy.orm import sessionmaker

from models import Base, Payment
from models.invoice import InvoiceStatus
from schemas.invoice import InvoiceCreate
from schemas.payment import PaymentCreate
from services import InvoiceService, PaymentService, InvoiceNotFoundError, InvalidAmountError


def payment(amount, on=date(2026, 1, 20), method="mpesa", reference=None):
     return PaymentCreate(amount=Decimal(amount), method=method, reference=reference, date=on)


class TestRecordPayment:

     def test_partial_then_full_payment(self, db, make_invoice):
          invoice = make_invoice(gross_amount=Decimal("3000"))
          assert invoice.effective_status == InvoiceStatus.SENT

          PaymentService.record_payment(db, invoice.id, payment("1500"), recorded_by="finance@test")
          invoice = InvoiceService.get_invoice(db, invoice.id)
          assert invoice.amount_paid == Decimal("1500")
          assert invoice.balance == Decimal("1500")
          assert invoice.effective_status == InvoiceStatus.PARTIALLY_PAID

          PaymentService.record_payment(db, invoice.id, payment("1500"), recorded_by="finance@test")
          invoice = InvoiceService.get_invoice(db, invoice.id)
          assert invoice.amount_paid == Decimal("3000")
          assert invoice.balance == Decimal("0")
          assert invoice.status == InvoiceStatus.PAID
          assert invoice.effective_status == InvoiceStatus.PAID

     def test_payment_record_fields(self, db, make_invoice):
          invoice = make_invoice()

          recorded = PaymentService.record_payment(
               db, invoice.id, payment("500", method="bank_transfer", reference="TRX-1"), recorded_by="cashier"
          )

          assert recorded.id is not None
          assert recorded.invoice_id == invoice.id
          assert recorded.amount == Decimal("500")
          assert recorded.method.value == "bank_transfer"
          assert recorded.reference == "TRX-1"
          assert recorded.recorded_by == "cashier"
          assert recorded.created_at is not None
          assert invoice.updated_at is not None

     def test_overpayment_clamps_balance(self, db, make_invoice, caplog):
          invoice = make_invoice(gross_amount=Decimal("1000"))

          with caplog.at_level("WARNING"):
               PaymentService.record_payment(db, invoice.id, payment("1200"), recorded_by="x")

          invoice = InvoiceService.get_invoice(db, invoice.id)
          assert invoice.amount_paid == Decimal("1200")
          assert invoice.balance == Decimal("0")
          assert "overpaid" in caplog.text

     def test_unknown_invoice(self, db):
          with pytest.raises(InvoiceNotFoundError):
               PaymentService.record_payment(db, 404, payment("100"), recorded_by="x")
          assert db.query(Payment).count() == 0

     def test_non_positive_amount_is_rejected(self, db, make_invoice):
          invoice = make_invoice()
          bad = PaymentCreate.model_construct(amount=Decimal("0"), method="cash", date=date.today())

          with pytest.raises(InvalidAmountError):
               PaymentService.record_payment(db, invoice.id, bad, recorded_by="x")

          assert db.query(Payment).count() == 0
          assert InvoiceService.get_invoice(db, invoice.id).amount_paid == Decimal("0")

     def test_sum_of_payments_matches_amount_paid(self, db, make_invoice):
          invoice = make_invoice(gross_amount=Decimal("2500"))
          for amount in ("100", "250.50", "1000"):
               PaymentService.record_payment(db, invoice.id, payment(amount), recorded_by="x")

          total = db.query(func.sum(Payment.amount)).filter(Payment.invoice_id == invoice.id).scalar()
          invoice = InvoiceService.get_invoice(db, invoice.id)
          assert Decimal(total) == invoice.amount_paid == Decimal("1350.50")
          assert invoice.balance == invoice.net_amount - invoice.amount_paid


class TestGetPayments:

     def test_newest_payment_date_first(self, db, make_invoice):
          invoice = make_invoice()
          first = PaymentService.record_payment(db, invoice.id, payment("100", on=date(2026, 1, 10)), recorded_by="x")
          third = PaymentService.record_payment(db, invoice.id, payment("100", on=date(2026, 1, 20)), recorded_by="x")
          second = PaymentService.record_payment(db, invoice.id, payment("100", on=date(2026, 1, 15)), recorded_by="x")
          same_day = PaymentService.record_payment(db, invoice.id, payment("100", on=date(2026, 1, 15)), recorded_by="x")

          ids = [p.id for p in PaymentService.get_payments_for_invoice(db, invoice.id)]

          assert ids == [third.id, second.id, same_day.id, first.id]

     def test_only_payments_for_that_invoice(self, db, make_invoice):
          one = make_invoice()
          other = make_invoice()
          PaymentService.record_payment(db, one.id, payment("100"), recorded_by="x")

          assert PaymentService.get_payments_for_invoice(db, other.id) == []

     def test_unknown_invoice(self, db):
          with pytest.raises(InvoiceNotFoundError):
               PaymentService.get_payments_for_invoice(db, 12345)


def test_concurrent_payments_on_one_invoice_are_not_lost(tmp_path):
     engine = create_engine(
          f"sqlite:///{tmp_path / 'ledger.db'}",
          connect_args={"check_same_thread": False, "timeout": 30},
     )
     Base.metadata.create_all(engine)
     Session = sessionmaker(bind=engine, expire_on_commit=False)

     with Session() as setup:
          invoice = InvoiceService.create_invoice(
               setup,
               InvoiceCreate(
                    payer_type="parent",
                    payer_id="p1",
                    term_id="t1",
                    gross_amount=Decimal("1000"),
                    due_date=date.today() + timedelta(days=30),
                    status="sent",
               ),
               created_by="x",
          )
          setup.commit()
          invoice_id = invoice.id

     errors = []

     def pay():
          try:
               with Session() as session:
                    PaymentService.record_payment(session, invoice_id, payment("100"), recorded_by="x")
          except Exception as exc:  # surfaced through the errors list
               errors.append(exc)

     threads = [threading.Thread(target=pay) for _ in range(10)]
     for t in threads:
          t.start()
     for t in threads:
          t.join()

     assert errors == []
     with Session() as check:
          invoice = InvoiceService.get_invoice(check, invoice_id)
          assert invoice.amount_paid == Decimal("1000")
          assert invoice.balance == Decimal("0")
          assert check.query(Payment).filter(Payment.invoice_id == invoice_id).count() == 10
     engine.dispose()
