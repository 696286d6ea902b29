from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("bills/", views.create_bill_view, name="create-bill"),
    path("invoices/", views.create_invoice_view, name="create-invoice"),
    path("payments/", views.create_payment_view, name="create-payment"),
    path("receipts/", views.create_receipt_view, name="create-receipt"),
    path("documents/<str:doc_type>/<int:doc_id>/void/",
         views.void_document_view, name="void-document"),
    path("journals/", views.journals_view, name="journals"),
    path("journals/<str:ref>/", views.journal_detail_view, name="journal-detail"),
    path("journals/<str:ref>/void/", views.void_journal_view, name="void-journal"),
    path("periods/<str:period>/audit/", views.period_audit_view, name="period-audit"),
    path("periods/<str:period>/close/", views.period_close_view, name="period-close"),
    path("periods/<str:period>/reopen/", views.period_reopen_view, name="period-reopen"),
    path("reports/trial-balance/", views.trial_balance_view, name="trial-balance"),
    path("reports/profit-loss/", views.profit_loss_view, name="profit-loss"),
    path("reports/balance-sheet/", views.balance_sheet_view, name="balance-sheet"),
    path("reports/general-ledger/<str:account_code>/",
         views.general_ledger_view, name="general-ledger"),
    path("reports/ap-aging/", views.ap_aging_view, name="ap-aging"),
    path("reports/ar-aging/", views.ar_aging_view, name="ar-aging"),
    path("reports/vat/<str:period>/", views.vat_position_view, name="vat-position"),
]
