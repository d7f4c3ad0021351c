from django.core.management.base import BaseCommand, CommandError

from projects.models import Project
from engagement.ledger import EngagementLedger


class Command(BaseCommand):
    help = "Recomputes like/bookmark/comment counters from the reaction rows"

    def add_arguments(self, parser):
        parser.add_argument("--project", type=int, help="Only recount this project id")

    def handle(self, *args, **options):
        project_ids = Project.objects.order_by("pk").values_list("pk", flat=True)
        if options.get("project"):
            project_ids = project_ids.filter(pk=options["project"])
            if not project_ids.exists():
                raise CommandError(f"Project {options['project']} does not exist")

        failed = 0
        total = 0
        for project_id in project_ids.iterator():
            counts = EngagementLedger.recount_project(project_id)
            total += 1
            if None in counts.values():
                failed += 1
                self.stderr.write(f"Project {project_id}: write-back failed, see logs")
            elif options["verbosity"] > 1:
                self.stdout.write(f"Project {project_id}: {counts}")

        self.stdout.write(self.style.SUCCESS(f"Recounted {total} project(s), {failed} failed"))
