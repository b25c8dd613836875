from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST
from flask import Response

# Remote document store metrics
remote_requests_total = Counter(
    "churchsite_remote_requests_total", "Requests sent to the remote document store", ["bin", "method", "status"]
)

remote_cache_hits_total = Counter("churchsite_remote_cache_hits_total", "Reads served from the remote document cache")

# Content store metrics
content_local_fallbacks_total = Counter(
    "churchsite_content_local_fallbacks_total", "Reads resolved from local files instead of remote", ["key"]
)

content_saves_total = Counter("churchsite_content_saves_total", "Content saves by outcome", ["key", "status"])


def init_metrics(app):
    @app.route("/metrics")
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
