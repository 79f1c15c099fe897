from allocation_health.health_gateway import (
    ReportServices, build_health_report, build_latest_health_report, build_utilization_analysis,
)
from allocation_health.utils.error_definitions import (
    NotFoundError, FetchTimeoutError, UpstreamUnavailableError, InvalidInputError,
)
