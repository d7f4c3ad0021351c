from django.core.management.base import BaseCommand

from core.tasks import collect_orphans


class Command(BaseCommand):
    help = "Deletes stored attachment files that no project or logbook entry references"

    def add_arguments(self, parser):
        parser.add_argument(
            "--grace",
            type=int,
            default=None,
            help="Skip files younger than this many seconds (default: ATTACHMENT_ORPHAN_GRACE_SECONDS)",
        )

    def handle(self, *args, **options):
        report = collect_orphans(grace_seconds=options.get("grace"))
        for store_name, removed in report.items():
            self.stdout.write(f"{store_name}: removed {removed} file(s)")
        self.stdout.write(self.style.SUCCESS(f"Removed {sum(report.values())} orphaned file(s)"))
