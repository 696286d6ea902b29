from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from ledger_core.exceptions import PeriodCloseBlockedError, PeriodLockedError
from ledger_core.services.periods import close_period, run_period_audit


class Command(BaseCommand):
    help = "Runs the pre-close audit for a period and closes it when no CRITICAL issue is found."

    def add_arguments(self, parser):
        parser.add_argument("period", type=str, help="Period to close, YYYY-MM")
        parser.add_argument(
            "--user",
            type=str,
            default=None,
            help="Username recorded as the closer",
        )

    def handle(self, *args, **options):
        period = options["period"]
        user = None
        if options["user"]:
            user = get_user_model().objects.filter(
                username=options["user"]).first()
            if user is None:
                raise CommandError(f"No user named {options['user']}")

        self.stdout.write(self.style.NOTICE(f"Auditing {period}..."))
        audit = run_period_audit(period)
        self.stdout.write(audit.summary)
        for issue in audit.issues:
            self.stdout.write(f"  [{issue['severity']}] {issue['message']}")

        try:
            snapshot = close_period(period, audit.pk, user=user)
        except (PeriodCloseBlockedError, PeriodLockedError) as exc:
            raise CommandError(str(exc)) from exc
        self.stdout.write(self.style.SUCCESS(
            f"Period {period} closed ({len(snapshot)} accounts snapshotted)"))
