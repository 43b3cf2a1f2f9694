# Control Tower metrics package
# Catalog, health classification, derived survival metrics and display formatting.

from .catalog import (  # noqa: F401
    FUNDAMENTAL_EVENTS,
    METRIC_CATALOG,
    METRIC_CATEGORIES,
    METRIC_CATEGORY_LABELS,
    MetricDefinition,
    MetricUnit,
    empty_metrics,
    get_metric_definition,
    group_by_category,
    metrics_for_category,
)
from .derived import (  # noqa: F401
    RUNWAY_SENTINEL,
    DerivedMetrics,
    apply_derived_metrics,
    compute_derived_metrics,
    derive_from_costs,
    sum_costs,
)
from .formatting import format_currency, format_metric_value  # noqa: F401
from .health import HEALTH_LABELS, MetricHealth, classify_metrics, get_metric_health  # noqa: F401
