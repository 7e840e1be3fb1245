# gunicorn -c gunicorn.config.py
import multiprocessing
import os

wsgi_app = "reviewdesk.main:app"

bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# (2 * cores) + 1 unless overridden
workers = int(os.getenv("WEB_CONCURRENCY", (multiprocessing.cpu_count() * 2) + 1))

# FastAPI runs under uvicorn's ASGI worker
worker_class = "uvicorn.workers.UvicornWorker"

# Paper uploads can be up to 10 MB on slow links
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

forwarded_allow_ips = "*"
proxy_headers = True
