# Routers package
from . import auth_router
from . import users_router
from . import cycles_router
from . import prediction_router

__all__ = [
    "auth_router",
    "users_router",
    "cycles_router",
    "prediction_router",
]
