from datetime import timedelta

from celery import Celery


def make_celery(app):
    celery = Celery(app.import_name, include=["canteen.tasks"])
    celery.conf.update(app.config["CELERY_CONFIG"])

    celery.conf.update(
        task_ignore_result=False,
        track_started=True,
        accept_content=['json'],
        result_expires=3600
    )

    interval = timedelta(minutes=app.config.get("HOUSEKEEPING_INTERVAL_MINUTES", 15))
    celery.conf.beat_schedule = {
        'purge-expired-tokens': {
            'task': 'canteen.tasks.purge_expired_tokens',
            'schedule': interval,
        },
        'clear-expired-otps': {
            'task': 'canteen.tasks.clear_expired_otps',
            'schedule': interval,
        },
    }

    class ContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    celery.set_default()
    return celery
