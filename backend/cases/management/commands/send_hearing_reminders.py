"""
Management command: send_hearing_reminders
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

E-mails the applicant of every active hearing that starts roughly one
hour from now, and posts a "Hearing Today" notification to the officer
and registrar of every hearing on today's calendar.  Intended to run
every few minutes from cron or a scheduler; each hearing is reminded at
most once and each staff notice is posted once per recipient.

Usage::

    python manage.py send_hearing_reminders
    python manage.py send_hearing_reminders --dry-run
    python manage.py send_hearing_reminders --skip-staff
"""

from django.core.management.base import BaseCommand

from cases.services import HearingReminderService


class Command(BaseCommand):
    help = (
        "Send reminder e-mails for hearings starting within the reminder window "
        "and notify staff of today's hearings."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List due hearings without sending anything.",
        )
        parser.add_argument(
            "--skip-staff",
            action="store_true",
            help="Do not post the 'Hearing Today' staff notifications.",
        )

    def handle(self, *args, **options):
        if options["dry_run"]:
            due = HearingReminderService.due_hearings()
            for hearing in due:
                self.stdout.write(
                    f"  {hearing.case.tracking_code}  hearing #{hearing.sequence_no}"
                    f"  at {hearing.scheduled_for.isoformat()}"
                )
            self.stdout.write(f"{len(due)} hearing(s) due.")
            if not options["skip_staff"]:
                today = HearingReminderService.todays_hearings().count()
                self.stdout.write(f"{today} hearing(s) today.")
            return

        sent = HearingReminderService.send_due_reminders()
        self.stdout.write(self.style.SUCCESS(f"Sent {sent} hearing reminder(s)."))
        if not options["skip_staff"]:
            notified = HearingReminderService.notify_staff_of_todays_hearings()
            self.stdout.write(
                self.style.SUCCESS(f"Notified staff of {notified} hearing(s) today.")
            )
