from sqlalchemy.dialects import mysql, postgresql, sqlite

from lms.errors import StoreError
from lms.extensions import db


def upsert(model, index_elements, values, update_values):
    """Insert ``values`` or, if a row with the same ``index_elements`` exists,
    apply ``update_values`` to it, as a single statement.

    ``index_elements`` must be covered by a unique constraint on ``model``.
    """
    dialect = db.engine.dialect.name

    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=index_elements, set_=update_values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=index_elements, set_=update_values)
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(model).values(**values)
        stmt = stmt.on_duplicate_key_update(**update_values)
    else:
        raise StoreError(f"Atomic upsert is not supported on {dialect}")

    db.session.execute(stmt)
