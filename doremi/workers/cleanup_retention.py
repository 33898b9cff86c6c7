"""Retention job: prune notifications, library overflow and year-old revenue records."""
import argparse
import logging

from doremi.core.config import settings
from doremi.core.logging import configure_logging
from doremi.services import PublishingServices, build_services

logger = logging.getLogger("doremi.cleanup.retention")


def cleanup_retention(
    *,
    services: PublishingServices | None = None,
    include_revenue: bool = True,
) -> dict:
    svc = services or build_services()
    report = svc.retention.cleanup()
    revenue_pruned = svc.retention.cleanup_revenue() if include_revenue else 0

    result = {
        "audience_notifications_pruned": report.audience_notifications_pruned,
        "admin_notifications_pruned": report.admin_notifications_pruned,
        "library_entries_pruned": report.library_entries_pruned,
        "revenue_records_pruned": revenue_pruned,
    }
    logger.info("[cleanup] retention pass complete", extra=result)
    return result


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the Doremi retention pass once")
    parser.add_argument("--skip-revenue", action="store_true", help="Leave revenue records untouched")
    args = parser.parse_args()

    configure_logging(settings.ENV, settings.LOG_LEVEL)
    result = cleanup_retention(include_revenue=not args.skip_revenue)
    print(result)
