"""
Ensure Schema Script - Creates missing tables and columns and reports drift
Run: python -m scripts.ensure_schema
"""
import argparse
import sys

from docrequest.config.settings import get_settings
from docrequest.repositories.mongo_client import close_connection
from docrequest.services.container import build_container
from docrequest.utils.logger import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or repair the document request tables")
    parser.parse_args()

    setup_logging()
    settings = get_settings()
    container = build_container(settings)
    try:
        reports = container.schema.ensure_ready()
    finally:
        container.close()
        close_connection()

    drift = False
    for report in reports:
        print(f"=== {report.table} ===")
        print(f"  Created: {report.created}")
        print(f"  Added columns: {', '.join(report.added_columns) or '-'}")
        if report.has_drift:
            drift = True
            print(f"  Missing critical: {', '.join(report.missing_critical) or '-'}")
            print(f"  Moved critical: {', '.join(report.moved_critical) or '-'}")
    return 1 if drift else 0


if __name__ == "__main__":
    sys.exit(main())
