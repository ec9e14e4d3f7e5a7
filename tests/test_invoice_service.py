from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import func

from models import Payment
from models.invoice import InvoiceStatus, PayerType
from models.payment import PaymentMethod
from schemas.invoice import InvoiceCreate
from services import InvoiceService, InvoiceNotFoundError, InvalidAmountError


class TestCreateInvoice:

     def test_computes_net_and_balance(self, make_invoice):
          invoice = make_invoice(gross_amount=Decimal("5000"), discount_amount=Decimal("500"))

          assert invoice.id is not None
          assert invoice.net_amount == Decimal("4500")
          assert invoice.balance == Decimal("4500")
          assert invoice.amount_paid == Decimal("0")
          assert invoice.currency == "KES"
          assert invoice.created_by == "finance@test"
          assert invoice.created_at is not None

     def test_opening_payment_reduces_balance(self, make_invoice):
          invoice = make_invoice(gross_amount=Decimal("3000"), amount_paid=Decimal("1000"))
          assert invoice.balance == Decimal("2000")
          assert invoice.effective_status == InvoiceStatus.PARTIALLY_PAID

     def test_opening_payment_is_recorded_as_a_payment(self, db, make_invoice):
          invoice = make_invoice(
               gross_amount=Decimal("3000"),
               amount_paid=Decimal("1000"),
               issue_date=date(2026, 1, 5),
               opening_payment_method=PaymentMethod.BANK_TRANSFER,
               opening_payment_reference="BT-77",
          )

          payments = db.query(Payment).filter(Payment.invoice_id == invoice.id).all()
          total = db.query(func.sum(Payment.amount)).filter(Payment.invoice_id == invoice.id).scalar()

          assert Decimal(total) == invoice.amount_paid
          assert len(payments) == 1
          assert payments[0].method == PaymentMethod.BANK_TRANSFER
          assert payments[0].reference == "BT-77"
          assert payments[0].date == date(2026, 1, 5)
          assert payments[0].recorded_by == "finance@test"

     def test_no_payment_row_without_opening_amount(self, db, make_invoice):
          invoice = make_invoice()
          assert db.query(Payment).filter(Payment.invoice_id == invoice.id).count() == 0

     def test_discount_larger_than_gross_is_rejected_by_schema(self):
          with pytest.raises(ValidationError):
               InvoiceCreate(
                    payer_type="parent",
                    payer_id="p1",
                    term_id="t1",
                    gross_amount=Decimal("100"),
                    discount_amount=Decimal("200"),
                    due_date=date.today(),
               )

     def test_service_rechecks_amounts(self, db):
          data = InvoiceCreate.model_construct(
               payer_type=PayerType.PARENT,
               payer_id="p1",
               term_id="t1",
               gross_amount=Decimal("-1"),
               discount_amount=Decimal("0"),
               amount_paid=Decimal("0"),
               due_date=date.today(),
               status=InvoiceStatus.DRAFT,
          )
          with pytest.raises(InvalidAmountError):
               InvoiceService.create_invoice(db, data, created_by="x")


class TestGetInvoices:

     def test_get_invoice_not_found(self, db):
          with pytest.raises(InvoiceNotFoundError):
               InvoiceService.get_invoice(db, 999)

     def test_overdue_scenario(self, make_invoice):
          invoice = make_invoice(gross_amount=Decimal("5000"), due_date=date.today() - timedelta(days=3))
          assert invoice.effective_status == InvoiceStatus.OVERDUE

     def test_filters_apply_to_effective_status(self, db, make_invoice):
          overdue = make_invoice(due_date=date.today() - timedelta(days=1))
          upcoming = make_invoice()
          school = make_invoice(payer_type=PayerType.SCHOOL, payer_id="org2", term_id="term-2-2026")

          overdue_ids = [i.id for i in InvoiceService.get_invoices(db, status=InvoiceStatus.OVERDUE)]
          assert overdue_ids == [overdue.id]

          sent_ids = {i.id for i in InvoiceService.get_invoices(db, status="sent")}
          assert sent_ids == {upcoming.id, school.id}

          term_ids = [i.id for i in InvoiceService.get_invoices(db, term_id="term-1-2026")]
          assert term_ids == [upcoming.id, overdue.id]

          school_ids = [i.id for i in InvoiceService.get_invoices(db, payer_type=PayerType.SCHOOL)]
          assert school_ids == [school.id]

     def test_reference_date_can_be_injected(self, db, make_invoice):
          invoice = make_invoice(due_date=date(2026, 3, 31))
          result = InvoiceService.get_invoices(db, status=InvoiceStatus.OVERDUE, today=date(2026, 4, 1))
          assert [i.id for i in result] == [invoice.id]


class TestUpdateInvoiceStatus:

     def test_cancel_keeps_amounts(self, db, make_invoice):
          invoice = make_invoice(due_date=date.today() - timedelta(days=10))

          updated = InvoiceService.update_invoice_status(db, invoice.id, InvoiceStatus.CANCELLED, updated_by="admin")

          assert updated.status == InvoiceStatus.CANCELLED
          assert updated.effective_status == InvoiceStatus.CANCELLED
          assert updated.balance == Decimal("3000")
          assert updated.updated_by == "admin"
          assert updated.updated_at is not None

     def test_missing_invoice(self, db):
          with pytest.raises(InvoiceNotFoundError):
               InvoiceService.update_invoice_status(db, 42, InvoiceStatus.CANCELLED)


def test_summarize_invoices(db, make_invoice):
     make_invoice(gross_amount=Decimal("3000"), amount_paid=Decimal("1500"))
     make_invoice(gross_amount=Decimal("5000"), due_date=date.today() - timedelta(days=1))
     cancelled = make_invoice(gross_amount=Decimal("1000"))
     InvoiceService.update_invoice_status(db, cancelled.id, InvoiceStatus.CANCELLED)
     make_invoice(gross_amount=Decimal("700"), term_id="other-term")

     summary = InvoiceService.summarize_invoices(db, term_id="term-1-2026")

     assert summary["total_invoices"] == 3
     assert summary["gross_amount"] == Decimal("9000")
     assert summary["amount_paid"] == Decimal("1500")
     assert summary["outstanding"] == Decimal("6500")
     assert summary["by_status"]["partially_paid"] == {"count": 1, "balance": Decimal("1500")}
     assert summary["by_status"]["overdue"]["count"] == 1
     assert summary["by_status"]["cancelled"]["count"] == 1
