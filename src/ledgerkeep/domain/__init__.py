"""Domain layer for ledgerkeep."""

_SERVICES = {
    "AccountService": "ledgerkeep.domain.account",
    "CategoryService": "ledgerkeep.domain.category",
    "OperationService": "ledgerkeep.domain.operation",
    "OperationsFeed": "ledgerkeep.domain.feed",
}

__all__ = list(_SERVICES)


# Services import the store, which imports entities from this package,
# so they are resolved on first access.
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
