"""
Management command: setup_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the base **Roles** the role policy keys on.

The command is **idempotent**: safe to run multiple times.  Existing
roles keep their primary key; only the description is refreshed.

Usage::

    python manage.py setup_roles
    python manage.py setup_roles --grant admin --user alice

Prerequisites::

    python manage.py migrate
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from accounts.models import Role
from core.domain.access import RoleName

# ────────────────────────────────────────────────────────────────────
# Role slug → description
# ────────────────────────────────────────────────────────────────────

BASE_ROLES: dict[str, str] = {
    RoleName.APPLICANT: "Submits applications and tracks their own cases.",
    RoleName.REGISTRAR: "Reviews completeness and schedules first hearings.",
    RoleName.HEARING_OFFICER: (
        "Conducts hearings in their district; adjourns and decides cases."
    ),
    RoleName.ADMIN: "Full access to every case, district and audit trail.",
    RoleName.SUPER_ADMIN: "Administrator who also manages other administrators.",
}


class Command(BaseCommand):
    help = (
        "Seeds the database with the base Roles.  Safe to run multiple "
        "times (idempotent).  Optionally grants one role to a user."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--grant",
            choices=sorted(BASE_ROLES),
            help="Role slug to grant to --user after seeding.",
        )
        parser.add_argument(
            "--user",
            help="Username, e-mail or national ID of the user to grant --grant to.",
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  Role Setup — Seeding Roles"
            "\n══════════════════════════════════════════\n"
        ))

        roles_created = 0
        roles_updated = 0

        for name, description in BASE_ROLES.items():
            role, created = Role.objects.get_or_create(
                name=name,
                defaults={"description": description},
            )
            if created:
                roles_created += 1
            elif role.description != description:
                role.description = description
                role.save(update_fields=["description"])
                roles_updated += 1

            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {'Created' if created else 'Checked'} role: {name}"
            ))

        if options.get("grant"):
            self._grant(options["grant"], options.get("user"))

        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  Done!  {roles_created} role(s) created, "
            f"{roles_updated} role(s) updated.\n"
        ))

    def _grant(self, role_name: str, identifier: str | None) -> None:
        if not identifier:
            raise CommandError("--grant requires --user.")

        User = get_user_model()
        user = (
            User.objects.filter(username=identifier).first()
            or User.objects.filter(email__iexact=identifier).first()
            or User.objects.filter(national_id=identifier).first()
        )
        if user is None:
            raise CommandError(f"User '{identifier}' not found.")

        user.roles.add(Role.objects.get(name=role_name))
        self.stdout.write(self.style.SUCCESS(
            f"  ✔  Granted '{role_name}' to {user.username}"
        ))
