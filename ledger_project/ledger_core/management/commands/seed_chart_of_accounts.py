from django.core.management.base import BaseCommand, CommandError

from ledger_core.exceptions import AccountingError
from ledger_core.models import Entity
from ledger_core.services import LedgerContext, seed_default_chart


class Command(BaseCommand):
    help = "Seed the default chart of accounts for one entity, or every entity of a tenant."

    def add_arguments(self, parser):
        parser.add_argument("--tenant", required=True,
                            help="Slug of the tenant that owns the entities.")
        parser.add_argument("--entity", type=int,
                            help="Entity id; all of the tenant's entities when omitted.")

    def handle(self, *args, **options):
        entities = Entity.objects.select_related("tenant").filter(
            tenant__slug=options["tenant"])
        if options["entity"] is not None:
            entities = entities.filter(pk=options["entity"])
        entities = list(entities)
        if not entities:
            raise CommandError("No matching entity for that tenant.")

        for entity in entities:
            ctx = LedgerContext(tenant=entity.tenant)
            try:
                result = seed_default_chart(ctx, entity.pk)
            except AccountingError as exc:
                raise CommandError(str(exc)) from exc

            if result["seeded"]:
                self.stdout.write(self.style.SUCCESS(
                    f"{entity.name}: created {result['accountCount']} accounts"))
            else:
                self.stdout.write(
                    f"{entity.name}: already has {result['accountCount']} accounts, skipped")
