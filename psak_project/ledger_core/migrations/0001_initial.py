import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=7, unique=True, validators=[django.core.validators.RegexValidator(message="Account code must look like <type-digit>-<5 digits>, e.g. 1-10100", regex="^\\d-\\d{5}$")])),
                ("name", models.CharField(max_length=200)),
                ("ac_type", models.CharField(choices=[("ASSET", "Aset"), ("LIABILITY", "Liabilitas"), ("EQUITY", "Ekuitas"), ("REVENUE", "Pendapatan"), ("COGS", "Harga Pokok Penjualan"), ("OPEX", "Beban Operasional"), ("OTHER_INCOME", "Pendapatan Lain-lain"), ("OTHER_EXPENSE", "Beban Lain-lain"), ("TAX_EXPENSE", "Beban Pajak")], max_length=20)),
                ("parent_code", models.CharField(blank=True, max_length=7, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("code",),
                "indexes": [models.Index(fields=["ac_type"], name="idx_account_type")],
            },
        ),
        migrations.CreateModel(
            name="Client",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                ("npwp", models.CharField(blank=True, default="", max_length=32)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, default="")),
                ("payment_terms", models.PositiveIntegerField(blank=True, null=True)),
                ("pph23_rate", models.DecimalField(decimal_places=4, default=decimal.Decimal("0.02"), max_digits=5, validators=[django.core.validators.MinValueValidator(decimal.Decimal("0")), django.core.validators.MaxValueValidator(decimal.Decimal("1"))])),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("withholds_pph23", models.BooleanField(default=False)),
            ],
            options={
                "ordering": ("name",),
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, unique=True)),
                ("npwp", models.CharField(blank=True, default="", max_length=32)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("address", models.TextField(blank=True, default="")),
                ("payment_terms", models.PositiveIntegerField(blank=True, null=True)),
                ("pph23_rate", models.DecimalField(decimal_places=4, default=decimal.Decimal("0.02"), max_digits=5, validators=[django.core.validators.MinValueValidator(decimal.Decimal("0")), django.core.validators.MaxValueValidator(decimal.Decimal("1"))])),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("provides_faktur_pajak", models.BooleanField(default=False)),
                ("subject_to_pph23", models.BooleanField(default=False)),
            ],
            options={
                "ordering": ("name",),
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="projects", to="ledger_core.client")),
            ],
            options={
                "ordering": ("code",),
            },
        ),
        migrations.CreateModel(
            name="DocumentSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=20)),
                ("year", models.PositiveIntegerField()),
                ("next_value", models.PositiveIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("name", "year"), name="uq_document_sequence_name_year")],
            },
        ),
        migrations.CreateModel(
            name="PeriodAudit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period", models.CharField(max_length=7, validators=[django.core.validators.RegexValidator(message="Period must be formatted YYYY-MM", regex="^\\d{4}-(0[1-9]|1[0-2])$")])),
                ("audit_type", models.CharField(default="PERIOD_CLOSE", max_length=20)),
                ("status", models.CharField(choices=[("RUNNING", "Running"), ("COMPLETED", "Completed")], default="RUNNING", max_length=10)),
                ("issues", models.JSONField(blank=True, default=list)),
                ("summary", models.TextField(blank=True, default="")),
                ("metrics", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ("-created_at",),
                "indexes": [models.Index(fields=["period", "status"], name="idx_period_audit_status")],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("reason", models.TextField(blank=True, default="")),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-created_at",),
                "indexes": [models.Index(fields=["object_type", "object_id"], name="idx_auditlog_object"), models.Index(fields=["created_at"], name="idx_auditlog_created")],
            },
        ),
        migrations.CreateModel(
            name="Journal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(blank=True, max_length=20, null=True, unique=True)),
                ("date", models.DateField()),
                ("period", models.CharField(db_index=True, editable=False, max_length=7)),
                ("description", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=[("draft", "Draft"), ("posted", "Posted"), ("reversed", "Reversed")], default="draft", max_length=10)),
                ("source_doc_type", models.CharField(blank=True, max_length=50, null=True)),
                ("source_doc_id", models.CharField(blank=True, max_length=64, null=True)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
                ("reversal_of", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversal", to="ledger_core.journal")),
            ],
            options={
                "ordering": ("date", "posted_at", "pk"),
                "permissions": [("reopen_period", "Can reopen a closed accounting period")],
                "indexes": [models.Index(fields=["date", "number"], name="idx_journal_date_number"), models.Index(fields=["status"], name="idx_journal_status"), models.Index(fields=["source_doc_type", "source_doc_id"], name="idx_journal_source")],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=400)),
                ("debit", models.BigIntegerField(default=0)),
                ("credit", models.BigIntegerField(default=0)),
                ("project_code", models.CharField(blank=True, max_length=32, null=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("account", models.ForeignKey(db_column="account_code", on_delete=django.db.models.deletion.PROTECT, related_name="lines", to="ledger_core.account", to_field="code")),
                ("journal", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.journal")),
            ],
            options={
                "ordering": ("journal", "sort_order", "pk"),
                "indexes": [models.Index(fields=["account", "journal"], name="idx_jline_account_journal"), models.Index(fields=["project_code"], name="idx_jline_project")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("debit__gte", 0), ("credit__gte", 0)), name="jl_non_negative_amounts"),
                    models.CheckConstraint(condition=models.Q(models.Q(("debit__gt", 0), ("credit", 0)), models.Q(("debit", 0), ("credit__gt", 0)), _connector="OR"), name="jl_debit_xor_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PeriodSnapshot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period", models.CharField(max_length=7, validators=[django.core.validators.RegexValidator(message="Period must be formatted YYYY-MM", regex="^\\d{4}-(0[1-9]|1[0-2])$")])),
                ("snapshot_date", models.DateField()),
                ("debit_total", models.BigIntegerField(default=0)),
                ("credit_total", models.BigIntegerField(default=0)),
                ("balance", models.BigIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(db_column="account_code", on_delete=django.db.models.deletion.PROTECT, related_name="snapshots", to="ledger_core.account", to_field="code")),
            ],
            options={
                "ordering": ("period", "account"),
                "indexes": [models.Index(fields=["snapshot_date"], name="idx_snapshot_date")],
                "constraints": [
                    models.UniqueConstraint(fields=("period", "account"), name="uq_period_snapshot_account"),
                    models.CheckConstraint(condition=models.Q(("debit_total__gte", 0), ("credit_total__gte", 0)), name="ps_non_negative_totals"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PeriodStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period", models.CharField(max_length=7, unique=True, validators=[django.core.validators.RegexValidator(message="Period must be formatted YYYY-MM", regex="^\\d{4}-(0[1-9]|1[0-2])$")])),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("CLOSED", "Closed")], default="OPEN", max_length=6)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("reopened_at", models.DateTimeField(blank=True, null=True)),
                ("reopen_reason", models.TextField(blank=True, null=True)),
                ("audit", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.periodaudit")),
                ("closed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("reopened_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "period statuses",
                "ordering": ("period",),
            },
        ),
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=20, unique=True)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("due_date", models.DateField()),
                ("subtotal", models.BigIntegerField(default=0)),
                ("vat_amount", models.BigIntegerField(default=0)),
                ("total", models.BigIntegerField(default=0)),
                ("vendor_invoice_number", models.CharField(blank=True, max_length=64, null=True)),
                ("category", models.CharField(choices=[("COGS", "Cost of goods sold (project)"), ("OPEX", "Operating expense")], max_length=4)),
                ("faktur_pajak_number", models.CharField(blank=True, max_length=20, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("approved", "Approved"), ("partial", "Partially paid"), ("paid", "Paid"), ("cancelled", "Cancelled")], default="draft", max_length=10)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("reversal_journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("project", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.project")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="bills", to="ledger_core.vendor")),
            ],
            options={
                "ordering": ("date", "number"),
                "abstract": False,
                "indexes": [models.Index(fields=["vendor", "date"], name="idx_bill_vendor_date"), models.Index(fields=["status"], name="idx_bill_status")],
            },
        ),
        migrations.CreateModel(
            name="BillLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, default="")),
                ("quantity", models.DecimalField(decimal_places=4, default=decimal.Decimal("1"), max_digits=14)),
                ("unit_price", models.BigIntegerField(default=0)),
                ("amount", models.BigIntegerField(default=0)),
                ("project_code", models.CharField(blank=True, max_length=32, null=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.bill")),
                ("expense_account", models.ForeignKey(db_column="expense_account_code", on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.account", to_field="code")),
            ],
            options={
                "ordering": ("bill", "sort_order", "pk"),
                "constraints": [models.CheckConstraint(condition=models.Q(("quantity__gt", 0), ("unit_price__gte", 0)), name="bl_non_negative_amounts")],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=20, unique=True)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("due_date", models.DateField()),
                ("subtotal", models.BigIntegerField(default=0)),
                ("vat_amount", models.BigIntegerField(default=0)),
                ("total", models.BigIntegerField(default=0)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("sent", "Sent"), ("partial", "Partially paid"), ("paid", "Paid"), ("cancelled", "Cancelled")], default="draft", max_length=10)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="ledger_core.client")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("reversal_journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("project", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.project")),
            ],
            options={
                "ordering": ("date", "number"),
                "abstract": False,
                "indexes": [models.Index(fields=["client", "date"], name="idx_invoice_client_date"), models.Index(fields=["status"], name="idx_invoice_status")],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.TextField(blank=True, default="")),
                ("quantity", models.DecimalField(decimal_places=4, default=decimal.Decimal("1"), max_digits=14)),
                ("unit_price", models.BigIntegerField(default=0)),
                ("amount", models.BigIntegerField(default=0)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.invoice")),
                ("revenue_account", models.ForeignKey(db_column="revenue_account_code", on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.account", to_field="code")),
            ],
            options={
                "ordering": ("invoice", "sort_order", "pk"),
                "constraints": [models.CheckConstraint(condition=models.Q(("quantity__gt", 0), ("unit_price__gte", 0)), name="il_non_negative_amounts")],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=20, unique=True)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("amount", models.BigIntegerField()),
                ("pph23_withheld", models.BigIntegerField(default=0)),
                ("bank_account_code", models.CharField(max_length=7)),
                ("bill", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_core.bill")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("reversal_journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="ledger_core.vendor")),
            ],
            options={
                "ordering": ("date", "number"),
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=20, unique=True)),
                ("date", models.DateField()),
                ("description", models.TextField(blank=True, default="")),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("amount", models.BigIntegerField()),
                ("pph23_withheld", models.BigIntegerField(default=0)),
                ("bank_account_code", models.CharField(max_length=7)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="ledger_core.client")),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="ledger_core.invoice")),
                ("journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
                ("reversal_journal", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="ledger_core.journal")),
            ],
            options={
                "ordering": ("date", "number"),
                "abstract": False,
            },
        ),
    ]
