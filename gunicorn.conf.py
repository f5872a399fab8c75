import os

# Server socket settings
bind = f"0.0.0.0:{os.getenv('PORT', '3001')}"
backlog = 2048

# Worker processes
# Rooms live in process memory, so every socket of a meeting must reach the
# same worker: run a single worker and scale with threads.
# Each open WebSocket holds one thread for its whole lifetime.
workers = int(os.getenv("GUNICORN_WORKERS", 1))
threads = int(os.getenv("GUNICORN_THREADS", 100))
print(f"✅ gthread mode: {workers} worker(s) × {threads} threads")
print(f"   Capacity: ~{workers * threads} concurrent WebSocket connections")

worker_class = "gthread"

# Timeouts
timeout = 120
keepalive = 65

# Preload app disabled to avoid DNS caching issues
preload_app = False

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Process naming
proc_name = "joinus_chat_server"

# Server mechanics
daemon = False
pidfile = None
umask = 0

# Worker recycling
graceful_timeout = 30


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def when_ready(server):
    server.log.info("Server is ready. Spawning workers")


def worker_int(worker):
    worker.log.info("worker received INT or QUIT signal")


def worker_exit(server, worker):
    # Let in-flight meeting summaries finish writing
    from app.meetings import services

    if services._meeting_registry is not None:
        services._meeting_registry.shutdown(wait=True)
