"""
Module ORM Registry (``workshop_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
holds all table definitions before tables are created.

Architecture position
---------------------
**Modules layer** -- utility.  The kernel's ``create_tables()`` imports it
lazily; nothing in ``workshop_kernel`` imports it at module load.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``workshop_modules.*.orm`` module.

    Kernel tables (profiles, settings, sequence counters) come first so
    module foreign keys resolve.  Idempotent.
    """
    import workshop_kernel.models  # noqa: F401
    import workshop_kernel.services.sequence_service  # noqa: F401
    # fmt: off
    import workshop_modules.inventory.orm  # noqa: F401
    import workshop_modules.bikes.orm  # noqa: F401
    import workshop_modules.tasks.orm  # noqa: F401
    import workshop_modules.availability.orm  # noqa: F401
    # fmt: on
