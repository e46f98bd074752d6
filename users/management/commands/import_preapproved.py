import csv

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from users.models import PreapprovedStudent, User


class Command(BaseCommand):
    help = "Loads the preapproved roll-number list from a CSV file (columns: roll_number, name)"

    def add_arguments(self, parser):
        parser.add_argument("csv_path")
        parser.add_argument(
            "--verify-existing",
            action="store_true",
            help="Also verify already-registered accounts whose roll number is on the list",
        )

    def handle(self, *args, **options):
        path = options["csv_path"]
        try:
            with open(path, newline="", encoding="utf-8-sig") as fh:
                rows = list(csv.DictReader(fh))
        except OSError as e:
            raise CommandError(f"Cannot read {path}: {e}")

        if rows and "roll_number" not in rows[0]:
            raise CommandError("CSV needs a 'roll_number' column")

        created = 0
        skipped = 0
        roll_numbers = []

        with transaction.atomic():
            for row in rows:
                roll_number = (row.get("roll_number") or "").strip()
                if not roll_number:
                    skipped += 1
                    continue
                roll_numbers.append(roll_number)
                _, was_created = PreapprovedStudent.objects.get_or_create(
                    roll_number=roll_number,
                    defaults={"name": (row.get("name") or "").strip()[:120]},
                )
                if was_created:
                    created += 1

            verified = 0
            if options["verify_existing"]:
                for roll_number in roll_numbers:
                    verified += User.objects.filter(
                        roll_number__iexact=roll_number, verified=False
                    ).update(verified=True)

        self.stdout.write(self.style.SUCCESS(
            f"Imported {created} roll numbers ({len(roll_numbers) - created} already present, "
            f"{skipped} blank rows skipped)"
        ))
        if options["verify_existing"]:
            self.stdout.write(f"Verified {verified} existing accounts")
