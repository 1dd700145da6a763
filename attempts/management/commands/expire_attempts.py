from django.core.management.base import BaseCommand
from django.db import DatabaseError

from attempts.deadline import sweep_abandoned, sweep_expired

class Command(BaseCommand):
    help = 'Auto-submits timed attempts past their deadline and flags idle untimed attempts as abandoned'

    def add_arguments(self, parser):
        parser.add_argument('--idle-hours', type=int, default=None,
                            help='Override ATTEMPT_ABANDON_AFTER_HOURS for this run')
        parser.add_argument('--skip-abandon', action='store_true', help='Only enforce deadlines')

    def handle(self, *args, **options):
        try:
            submitted = sweep_expired()
        except DatabaseError as e:
            self.stdout.write(self.style.ERROR(f"Deadline sweep failed: {e}"))
            raise
        self.stdout.write(self.style.SUCCESS(f"Auto-submitted {submitted} expired attempt(s)"))

        if not options['skip_abandon']:
            abandoned = sweep_abandoned(idle_hours=options['idle_hours'])
            self.stdout.write(self.style.SUCCESS(f"Flagged {abandoned} idle attempt(s) as abandoned"))
