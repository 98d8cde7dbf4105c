"""Import every model so ``Base.metadata`` is complete for Alembic and ``create_all``."""
from lor_tracker.db.base import Base
from lor_tracker import models  # noqa: F401

target_metadata = Base.metadata
