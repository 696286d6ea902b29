import datetime
import functools
import json
import logging

from django.core.exceptions import (ObjectDoesNotExist, PermissionDenied,
                                    ValidationError)
from django.http import JsonResponse
from django.views.decorators.http import (require_GET, require_http_methods,
                                          require_POST)

from . import services
from .exceptions import (AlreadyVoidedError, ExceedsBalance, MissingProject,
                         PeriodCloseBlockedError, PeriodLockedError,
                         TaxRuleError, UnbalancedJournalError)

logger = logging.getLogger(__name__)

# Most specific first: MissingProject and ExceedsBalance are ValidationErrors
ERROR_STATUS = (
    (ExceedsBalance, 422),
    (MissingProject, 400),
    (ValidationError, 400),
    (TaxRuleError, 422),
    (UnbalancedJournalError, 422),
    (PeriodLockedError, 409),
    (PeriodCloseBlockedError, 409),
    (AlreadyVoidedError, 409),
    (PermissionDenied, 403),
    (ObjectDoesNotExist, 404),
)


def _error_body(exc):
    body = {"ok": False, "error": exc.__class__.__name__}
    if isinstance(exc, ValidationError):
        if hasattr(exc, "error_dict"):
            body["detail"] = exc.message_dict
        else:
            body["detail"] = exc.messages
    else:
        body["detail"] = str(exc)
    if isinstance(exc, TaxRuleError) and exc.field:
        body["field"] = exc.field
    if isinstance(exc, PeriodCloseBlockedError):
        body["critical_issues"] = exc.critical_issues
    return body


def ledger_api(view):
    """Turn ledger errors into JSON responses with a matching status code."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except tuple(cls for cls, _ in ERROR_STATUS) as exc:
            status = next(code for cls, code in ERROR_STATUS if isinstance(exc, cls))
            logger.info("%s %s -> %s %s", request.method, request.path,
                        status, exc.__class__.__name__)
            return JsonResponse(_error_body(exc), status=status)

    return wrapper


def _payload(request):
    if not request.body:
        return {}
    try:
        return json.loads(request.body)
    except ValueError:
        raise ValidationError("Request body must be JSON") from None


def _date(value, field):
    if value is None:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError({field: f"{value!r} is not a YYYY-MM-DD date"}) from None


def _required(data, field):
    if data.get(field) in (None, ""):
        raise ValidationError({field: "This field is required"})
    return data[field]


def _user(request):
    user = getattr(request, "user", None)
    return user if getattr(user, "is_authenticated", False) else None


def _journal_json(je, with_lines=False):
    data = {
        "id": je.pk,
        "number": je.number,
        "date": je.date,
        "period": je.period,
        "description": je.description,
        "status": je.status,
        "kind": je.kind,
        "source_doc_type": je.source_doc_type,
        "source_doc_id": je.source_doc_id,
        "reversal_of": je.reversal_of_id,
        "voided_at": je.voided_at,
        "void_reason": je.void_reason,
    }
    if with_lines:
        data["lines"] = [
            {"account_code": l.account_id, "debit": l.debit, "credit": l.credit,
             "description": l.description, "project_code": l.project_code}
            for l in je.lines.all()
        ]
    return data


def _document_json(doc):
    data = {"id": doc.pk, "number": doc.number, "date": doc.date,
            "journal": doc.journal.number if doc.journal_id else None}
    for field in ("status", "due_date", "subtotal", "vat_amount", "total",
                  "amount", "pph23_withheld"):
        if hasattr(doc, field):
            data[field] = getattr(doc, field)
    return data


# ----------------------------
# Documents
# ----------------------------
@require_POST
@ledger_api
def create_bill_view(request):
    data = _payload(request)
    bill, journal = services.create_bill(
        _date(_required(data, "date"), "date"),
        _required(data, "vendor_id"),
        _required(data, "category"),
        data.get("lines") or [],
        project=data.get("project"),
        faktur_pajak_number=data.get("faktur_pajak_number"),
        vendor_invoice_number=data.get("vendor_invoice_number"),
        due_date=_date(data.get("due_date"), "due_date"),
        description=data.get("description", ""),
        user=_user(request),
    )
    return JsonResponse({"ok": True, "bill": _document_json(bill),
                         "journal": _journal_json(journal, True)}, status=201)


@require_POST
@ledger_api
def create_invoice_view(request):
    data = _payload(request)
    invoice, journal = services.create_invoice(
        _date(_required(data, "date"), "date"),
        _required(data, "client_id"),
        data.get("lines") or [],
        due_date=_date(data.get("due_date"), "due_date"),
        project=data.get("project"),
        description=data.get("description", ""),
        user=_user(request),
    )
    return JsonResponse({"ok": True, "invoice": _document_json(invoice),
                         "journal": _journal_json(journal, True)}, status=201)


@require_POST
@ledger_api
def create_payment_view(request):
    data = _payload(request)
    payment, journal = services.create_payment(
        _date(_required(data, "date"), "date"),
        _required(data, "bill_id"),
        _required(data, "amount"),
        data.get("bank_account_code"),
        description=data.get("description", ""),
        user=_user(request),
    )
    return JsonResponse({"ok": True, "payment": _document_json(payment),
                         "journal": _journal_json(journal, True)}, status=201)


@require_POST
@ledger_api
def create_receipt_view(request):
    data = _payload(request)
    receipt, journal = services.create_receipt(
        _date(_required(data, "date"), "date"),
        _required(data, "invoice_id"),
        _required(data, "amount"),
        data.get("bank_account_code"),
        pph23_withheld=data.get("pph23_withheld"),
        description=data.get("description", ""),
        user=_user(request),
    )
    return JsonResponse({"ok": True, "receipt": _document_json(receipt),
                         "journal": _journal_json(journal, True)}, status=201)


@require_POST
@ledger_api
def void_document_view(request, doc_type, doc_id):
    data = _payload(request)
    reversal = services.void_document(
        doc_type, doc_id, _required(data, "reason"),
        date=_date(data.get("date"), "date"), user=_user(request),
    )
    return JsonResponse({"ok": True, "reversal": _journal_json(reversal, True)})


# ----------------------------
# Journals
# ----------------------------
@require_http_methods(["GET", "POST"])
@ledger_api
def journals_view(request):
    if request.method == "POST":
        data = _payload(request)
        journal = services.create_manual_journal(
            _date(_required(data, "date"), "date"),
            data.get("description", ""),
            data.get("lines") or [],
            user=_user(request),
        )
        return JsonResponse({"ok": True, "journal": _journal_json(journal, True)},
                            status=201)

    params = request.GET
    journals = services.list_journals(
        period=params.get("period"),
        status=params.get("status"),
        source_doc_type=params.get("source_doc_type"),
        account_code=params.get("account_code"),
        date_from=_date(params.get("date_from"), "date_from"),
        date_to=_date(params.get("date_to"), "date_to"),
    )
    return JsonResponse({"ok": True, "journals": [_journal_json(j) for j in journals]})


@require_GET
@ledger_api
def journal_detail_view(request, ref):
    return JsonResponse({"ok": True,
                         "journal": _journal_json(services.get_journal(ref), True)})


@require_POST
@ledger_api
def void_journal_view(request, ref):
    data = _payload(request)
    reversal = services.void_journal(
        services.get_journal(ref), _required(data, "reason"),
        date=_date(data.get("date"), "date"), user=_user(request),
    )
    return JsonResponse({"ok": True, "reversal": _journal_json(reversal, True)})


# ----------------------------
# Periods
# ----------------------------
@require_POST
@ledger_api
def period_audit_view(request, period):
    audit = services.run_period_audit(period)
    return JsonResponse({
        "ok": True, "audit_id": audit.pk, "period": audit.period,
        "summary": audit.summary, "issues": audit.issues, "metrics": audit.metrics,
    })


@require_POST
@ledger_api
def period_close_view(request, period):
    data = _payload(request)
    snapshot = services.close_period(
        period, data.get("audit_id"), user=_user(request))
    return JsonResponse({
        "ok": True, "period": period,
        "snapshot": [
            {"account_code": s.account_id, "debit_total": s.debit_total,
             "credit_total": s.credit_total, "balance": s.balance}
            for s in snapshot
        ],
    })


@require_POST
@ledger_api
def period_reopen_view(request, period):
    data = _payload(request)
    status = services.reopen_period(
        period, _user(request), data.get("reason", ""))
    return JsonResponse({"ok": True, "period": status.period, "status": status.status})


# ----------------------------
# Reports
# ----------------------------
def _as_of(request):
    return _date(request.GET.get("as_of"), "as_of") or datetime.date.today()


@require_GET
@ledger_api
def trial_balance_view(request):
    return JsonResponse({"ok": True, **services.trial_balance(_as_of(request))})


@require_GET
@ledger_api
def profit_loss_view(request):
    start = request.GET.get("start_period")
    if not start:
        raise ValidationError({"start_period": "This field is required"})
    report = services.profit_loss(start, request.GET.get("end_period"))
    return JsonResponse({"ok": True, **report})


@require_GET
@ledger_api
def balance_sheet_view(request):
    return JsonResponse({"ok": True, **services.balance_sheet(_as_of(request))})


@require_GET
@ledger_api
def general_ledger_view(request, account_code):
    report = services.general_ledger(
        account_code,
        period=request.GET.get("period"),
        as_of=_date(request.GET.get("as_of"), "as_of"),
    )
    return JsonResponse({"ok": True, **report})


@require_GET
@ledger_api
def ap_aging_view(request):
    return JsonResponse({"ok": True, **services.ap_aging(_as_of(request))})


@require_GET
@ledger_api
def ar_aging_view(request):
    return JsonResponse({"ok": True, **services.ar_aging(_as_of(request))})


@require_GET
@ledger_api
def vat_position_view(request, period):
    return JsonResponse({"ok": True, **services.vat_position(period)})
