"""
Workshop Modules.

Business logic of the bike workshop on top of the kernel.  Each module
contains domain models (frozen DTOs), ORM tables, a service that owns its
transactions, and read-only selectors:

- bikes: the bike workflow (intake, diagnosis, approval, repair, finish),
  the completion checklist, table/call management and warranty analytics
- tasks: front-of-house tasks with sequential numbers and rejection
- inventory: repair catalogue and stock ledger with groups
- availability: mechanic working-time requests and approved hours
"""

from workshop_modules import availability, bikes, inventory, tasks

__all__ = ["availability", "bikes", "inventory", "tasks"]
