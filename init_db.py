#!/usr/bin/env python3
"""
Create the sharing schema directly from the models.

Use Flask-Migrate (`flask db upgrade`) on real deployments; this script is
for local databases and throwaway environments.
"""

import argparse
import logging

from sqlalchemy import inspect

from app import create_app
from extensions import db
import models  # noqa: F401  registers every model on the metadata

logger = logging.getLogger(__name__)


def init_database(drop_first=False):
    app = create_app()

    with app.app_context():
        if drop_first:
            logger.warning("Dropping all tables")
            db.drop_all()

        db.create_all()

        tables = sorted(inspect(db.engine).get_table_names())
        logger.info(f"{len(tables)} tables ready: {', '.join(tables)}")
        return tables


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the document sharing tables")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    init_database(drop_first=args.drop)
