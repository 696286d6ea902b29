from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import (Account, Bill, Invoice, Journal, JournalLine, Payment,
                     PeriodStatus, Receipt)

""" Block deletion of anything that is already part of the ledger."""


# pre_delete also covers queryset.delete(), which skips Model.delete()
@receiver(pre_delete, sender=Journal)
def prevent_delete_posted_journal(sender, instance, **kwargs):
    if instance.status != "draft":
        raise ValidationError(
            "Posted journals cannot be deleted; void them instead.")


@receiver(pre_delete, sender=JournalLine)
def prevent_delete_posted_line(sender, instance, **kwargs):
    if Journal.objects.filter(pk=instance.journal_id).exclude(status="draft").exists():
        raise ValidationError("Cannot delete JournalLine: parent journal is posted.")


"""Block deletion if account has ever been used in a journal line."""


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete account used in journal lines.")


"""Documents that produced a journal are voided, never deleted."""


@receiver(pre_delete, sender=Bill)
@receiver(pre_delete, sender=Invoice)
@receiver(pre_delete, sender=Payment)
@receiver(pre_delete, sender=Receipt)
def prevent_delete_posted_document(sender, instance, **kwargs):
    if instance.journal_id is not None:
        raise ValidationError(
            f"Cannot delete {sender.__name__} {instance.number}; void it instead.")


@receiver(pre_delete, sender=PeriodStatus)
def prevent_delete_closed_period(sender, instance, **kwargs):
    if instance.is_closed:
        raise ValidationError(
            f"Cannot delete the status of closed period {instance.period}.")
