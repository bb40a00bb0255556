#!/usr/bin/env python
from flask_migrate import upgrade
from config import ProductionConfig
from bloodbank import create_app


def deploy():
    """Run deployment tasks"""
    app = create_app(ProductionConfig)
    with app.app_context():
        # Migrate database to latest revision
        upgrade()
        app.logger.info('Database migrated to latest revision')


if __name__ == '__main__':
    deploy()
