"""
Prometheus Metrics Module

Provides instrumentation for the voting engine and API:
- Ballots submitted and meetings resolved
- Resolution failures (swallowed, so only visible here and in logs)
- Reviews submitted
- TMDB lookups
- API request counts and durations
- Error tracking

Usage:
    from server.metrics import metrics
    metrics.ballots_submitted.inc()
    metrics.meetings_resolved.labels(outcome="movie_and_date").inc()
"""

from prometheus_client import Counter, Histogram, generate_latest, REGISTRY


class MovieNightMetrics:
    """Centralized metrics for the voting engine and API"""

    def __init__(self):
        # Voting metrics
        self.ballots_submitted = Counter(
            'movienight_ballots_submitted_total',
            'Total ballots accepted'
        )

        self.ballots_rejected = Counter(
            'movienight_ballots_rejected_total',
            'Total ballots rejected by reason',
            ['reason']  # validation/conflict
        )

        self.meetings_resolved = Counter(
            'movienight_meetings_resolved_total',
            'Meetings resolved at voting close',
            ['outcome']  # movie_and_date/movie_only/date_only/no_votes
        )

        self.resolution_failures = Counter(
            'movienight_resolution_failures_total',
            'Resolution runs that failed and were skipped'
        )

        self.voting_transitions = Counter(
            'movienight_voting_transitions_total',
            'voting_open transitions applied',
            ['transition']  # close/reopen
        )

        self.reviews_submitted = Counter(
            'movienight_reviews_submitted_total',
            'Total reviews accepted'
        )

        # Vendor metrics
        self.tmdb_lookups = Counter(
            'movienight_tmdb_lookups_total',
            'TMDB lookups by status',
            ['status']  # found/not_found/error
        )

        self.tmdb_request_duration = Histogram(
            'movienight_tmdb_request_duration_seconds',
            'TMDB request duration',
            buckets=[0.1, 0.25, 0.5, 1, 2, 5, 10]
        )

        # API metrics
        self.api_requests = Counter(
            'movienight_api_requests_total',
            'Total API requests',
            ['endpoint', 'method', 'status_code']
        )

        self.api_request_duration = Histogram(
            'movienight_api_request_duration_seconds',
            'API request duration',
            ['endpoint', 'method'],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
        )

        # Error metrics
        self.errors = Counter(
            'movienight_errors_total',
            'Total errors by component and type',
            ['component', 'error_type']
        )

    def record_error(self, component: str, error: Exception):
        """Record an error

        Args:
            component: Component name (voting/tmdb/database/api)
            error: Exception instance
        """
        error_type = type(error).__name__
        self.errors.labels(component=component, error_type=error_type).inc()


# Global metrics instance
metrics = MovieNightMetrics()


def get_metrics_text() -> str:
    """Get Prometheus metrics in text format

    Returns:
        Metrics text suitable for /metrics endpoint
    """
    return generate_latest(REGISTRY).decode('utf-8')
