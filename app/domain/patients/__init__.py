from .router import patients_router, profiles_router

__all__ = ["patients_router", "profiles_router"]
