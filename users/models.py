# examhall/users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    class Role(models.TextChoices):
        CANDIDATE = "candidate", "Candidate"
        EXAMINER = "examiner", "Examiner"
        ADMIN = "admin", "Admin"

    # Enforce unique email for authentication
    email = models.EmailField(unique=True)

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CANDIDATE)
    student_id = models.CharField(max_length=50, blank=True)
    phone_number = models.CharField(max_length=15, blank=True)

    # Set email as the main field for authentication
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name', 'last_name']

    @property
    def can_author_exams(self):
        return self.is_staff or self.role in (self.Role.EXAMINER, self.Role.ADMIN)

    @property
    def is_platform_admin(self):
        return self.is_staff or self.role == self.Role.ADMIN

    def __str__(self):
        return self.email
