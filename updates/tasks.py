# updates/tasks.py

from celery import shared_task

from . import services


@shared_task
def run_update_feeder():
    """
    Beat entry point (see CELERY_BEAT_SCHEDULE).
    """
    result = services.run_feeder()
    return {key: result[key] for key in ("ok", "run", "fetched", "inserted")}


@shared_task
def notify_new_updates(update_ids):
    return services.notify_users(update_ids)
