"""
Management command to promote an existing account to admin
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = "Grants (or with --revoke, removes) the admin flag for the account with the given email"

    def add_arguments(self, parser):
        parser.add_argument('email', help='Email address of the account')
        parser.add_argument(
            '--revoke',
            action='store_true',
            help='Remove the admin flag instead of granting it',
        )

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        try:
            user = User.objects.get(username=email)
        except User.DoesNotExist:
            raise CommandError(f"No account found for {email}")

        user.is_staff = not options['revoke']
        user.save(update_fields=['is_staff', 'updated_at'])

        verb = "Revoked admin from" if options['revoke'] else "Granted admin to"
        self.stdout.write(self.style.SUCCESS(f"{verb} {email}"))
