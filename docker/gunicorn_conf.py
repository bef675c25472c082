# gunicorn -c docker/gunicorn_conf.py recipe_flow.main:app
import os

bind = f"0.0.0.0:{os.getenv('PORT','8000')}"
# The JSON file store is single-writer; scale out only with an external store.
workers = int(os.getenv("WEB_CONCURRENCY", "1")) or 1
worker_class = "uvicorn.workers.UvicornWorker"
timeout = int(os.getenv("TIMEOUT", "120"))
keepalive = 5
graceful_timeout = 30
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
