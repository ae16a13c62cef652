# PATH: apps/domains/submissions/management/commands/run_submission_consumer.py
"""
제출 stream consumer 워커 실행 (SIGTERM/SIGINT 시 현재 배치 완료 후 종료)

  python manage.py run_submission_consumer
  python manage.py run_submission_consumer --workers 4

설정은 SUBMISSION_* 환경변수 (questflow.framework.workers.config).
"""
from django.core.management.base import BaseCommand, CommandError

from questflow.framework.workers.config import load_config
from questflow.framework.workers.submission_stream_worker import run_submission_worker_pool


class Command(BaseCommand):
    help = "Consume the submission stream and persist submissions (consumer group worker pool)"

    def add_arguments(self, parser):
        parser.add_argument("--workers", type=int, help="consumer thread count (default: SUBMISSION_WORKER_COUNT)")

    def handle(self, *args, **opts):
        workers = opts.get("workers")
        if workers is not None and workers <= 0:
            raise CommandError("--workers must be > 0")

        try:
            config = load_config()
        except RuntimeError as e:
            raise CommandError(str(e)) from e

        exit_code = run_submission_worker_pool(config=config, worker_count=workers)
        if exit_code != 0:
            raise CommandError("submission consumer group initialization failed")
        self.stdout.write(self.style.SUCCESS("Submission consumer stopped"))
