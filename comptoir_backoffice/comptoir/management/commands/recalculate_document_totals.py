from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from comptoir.models import Document
from comptoir.services.documents import recalculate_document


class Command(BaseCommand):
    help = 'Recomputes line and document totals for every invoice and quote'

    def add_arguments(self, parser):
        parser.add_argument('--user', help='Only documents owned by this username')

    def handle(self, *args, **options):
        documents = Document.objects.all().prefetch_related('items', 'payments')

        username = options.get('user')
        if username:
            User = get_user_model()
            try:
                user = User.objects.get(**{User.USERNAME_FIELD: username})
            except User.DoesNotExist:
                raise CommandError(f"User '{username}' does not exist")
            documents = documents.filter(owner=user)

        changed = 0
        for doc in documents.order_by('id'):
            before = (doc.total, doc.amount_due)
            recalculate_document(doc)
            if (doc.total, doc.amount_due) != before:
                changed += 1
                self.stdout.write(f" - {doc}: total {before[0]} -> {doc.total}")

        self.stdout.write(self.style.SUCCESS(
            f"Recalculated {documents.count()} documents ({changed} changed)."
        ))
