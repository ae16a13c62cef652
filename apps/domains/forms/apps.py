# apps/domains/forms/apps.py
from django.apps import AppConfig


class FormsDomainConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.domains.forms"
    # "forms" 는 django.forms 와 혼동되므로 별도 label
    label = "forms_domain"
