"""
Management command: run the auto-void sweep once.

Usage:
    python manage.py sweep_void_consignments
"""

from django.core.management.base import BaseCommand
from apps.consignments.voiding import AutoVoidSweeper


class Command(BaseCommand):
    help = "Cancel every live consignment carrying critical validation flags"

    def handle(self, *args, **options):
        voided = AutoVoidSweeper().sweep()
        for item in voided:
            self.stdout.write(
                f"{item['consignment_number']}: {', '.join(item['critical_flags'])}"
            )
        self.stdout.write(self.style.SUCCESS(f"Voided {len(voided)} consignments."))
