from ticketgate.middlewares.db_middleware import DatabaseMiddleware
from ticketgate.middlewares.identity_middleware import IdentityMiddleware, IsStaff
from ticketgate.middlewares.rate_limit_middleware import RateLimitMiddleware

__all__ = ["DatabaseMiddleware", "IdentityMiddleware", "IsStaff", "RateLimitMiddleware"]
