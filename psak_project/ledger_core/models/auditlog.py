from django.conf import settings
from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Who did what to which ledger object, and why
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # post, void, close_period, reopen_period, ...
    action = models.CharField(max_length=50)
    # "Journal", "Bill", "PeriodStatus", ...
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    reason = models.TextField(blank=True, default="")
    # Before/after details of what changed
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=["object_type", "object_id"], name="idx_auditlog_object"),
            models.Index(fields=["created_at"], name="idx_auditlog_created"),
        ]

    def __str__(self):
        time = self.created_at
        return (f"[{time:%Y-%m-%d %H:%M}] {self.user} {self.action} "
                f"{self.object_type}({self.object_id})")
