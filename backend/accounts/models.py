"""
Accounts app models.

Defines the dynamic Role system and a custom User model that extends
Django's ``AbstractUser``.  A user holds a *set* of roles; the role policy
in ``core.domain.access`` classifies that set per request.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class Role(models.Model):
    """
    Dynamic, admin-manageable role.

    ``name`` is the slug the role policy keys on.  Default roles seeded
    by the ``setup_roles`` management command:

        applicant, registrar, hearing_officer, admin, super_admin
    """

    name = models.CharField(
        max_length=50,
        unique=True,
        verbose_name="Role Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["name"]

    def __str__(self):
        return self.name


class User(AbstractUser):
    """
    Custom user model for the environmental adjudication system.

    Staff members (registrars, hearing officers, administrators) and
    applicants share this model.  Login is supported via username,
    e-mail, or national ID together with the password.

    ``district`` matters only for hearing officers: a hearing officer
    without registrar/admin roles is restricted to cases in their
    district.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    national_id = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        verbose_name="National ID",
        help_text="National identity number (CNIC).",
    )
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )
    district = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name="District",
        db_index=True,
    )

    # ── Role set (dynamic RBAC) ──────────────────────────────────────
    roles = models.ManyToManyField(
        Role,
        blank=True,
        related_name="users",
        verbose_name="Roles",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_full_name() or self.email})"

    @property
    def role_names(self) -> frozenset[str]:
        """Current role slugs, read from the database on every access."""
        if self.pk is None:
            return frozenset()
        return frozenset(self.roles.values_list("name", flat=True))

    def has_role(self, role_name: str) -> bool:
        """Check if the user currently holds the given role."""
        return self.pk is not None and self.roles.filter(name=role_name).exists()
