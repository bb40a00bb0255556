import logging
from logging.config import fileConfig

from flask import current_app

from alembic import context

# Configure logging from alembic.ini file
config = context.config
fileConfig(config.config_file_name)
logger = logging.getLogger('alembic.env')


def get_engine():
    """Get SQLAlchemy engine from Flask app."""
    return current_app.extensions['migrate'].db.engine


def get_engine_url():
    """Get database URL from the engine, keeping the password."""
    return get_engine().url.render_as_string(hide_password=False).replace('%', '%%')


# Configure sqlalchemy URL
config.set_main_option('sqlalchemy.url', get_engine_url())
target_db = current_app.extensions['migrate'].db


def get_metadata():
    """Get database metadata from current application."""
    if hasattr(target_db, 'metadatas'):
        return target_db.metadatas[None]
    return target_db.metadata


def run_migrations_offline():
    """Emit the migration SQL to the script output instead of a database."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=get_metadata(),
        literal_binds=True,
        render_as_batch=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations against the app's configured database."""
    # Skip empty autogenerated revisions
    def process_revision_directives(context, revision, directives):
        if getattr(config.cmd_opts, 'autogenerate', False):
            script = directives[0]
            if script.upgrade_ops.is_empty():
                directives[:] = []
                logger.info('No changes detected in schema.')

    conf_args = current_app.extensions['migrate'].configure_args
    conf_kwargs = {
        'target_metadata': get_metadata(),
        'process_revision_directives': process_revision_directives,
        'compare_type': True,
        **conf_args
    }

    with get_engine().connect() as connection:
        context.configure(
            connection=connection,
            **conf_kwargs
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
