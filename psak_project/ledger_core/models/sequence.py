from django.db import models


class DocumentSequence(models.Model):
    """
    Counters behind human-readable numbers (JRN-2025-0001, BILL-2025-0001 ...).

    Rows are only touched under select_for_update() by
    services.posting.next_number, so two writers never get the same value.
    """

    name = models.CharField(max_length=20)  # "JRN", "BILL", "INV", ...
    year = models.PositiveIntegerField()
    next_value = models.PositiveIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["name", "year"], name="uq_document_sequence_name_year"
            ),
        ]

    def __str__(self):
        return f"{self.name}-{self.year}={self.next_value}"
