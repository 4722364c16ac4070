"""
Shared module for common utilities across REST API and WS Gateway.

STRUCTURE:
- shared.security: Authentication and authorization
  - auth.py: JWT verification, current_user_context, require_permission

- shared.infrastructure: Database and messaging
  - db.py: SQLAlchemy sessions, unit_of_work()
  - correlation.py: X-Request-ID middleware and log filter
  - events/: Redis pub/sub for the queue and display screens

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, OrderStatus, PaymentMethod, ORDER_PERMISSIONS

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - schemas.py: Request/response Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_user_context
    from shared.infrastructure.db import get_db, unit_of_work
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.exceptions import UnauthorizedError, InsufficientRoleError
"""
