"""Domain layer for cashbook application."""

# Services are imported lazily: the database mappers import the entities
# module, and the services import the database layer.
_SERVICES = {
    "EntityStore": "cashbook.domain.store",
    "MovementService": "cashbook.domain.movement",
    "DocumentService": "cashbook.domain.document",
    "LedgerProjection": "cashbook.domain.projection",
    "BusinessConfigService": "cashbook.domain.business_config",
    "SyncEngine": "cashbook.domain.sync",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
