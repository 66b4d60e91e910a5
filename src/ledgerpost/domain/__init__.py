"""Domain layer for ledgerpost application.

Services are exported lazily: they depend on the database and provider
packages, which in turn import the entities defined here.
"""

_SERVICES = {
    "RowImportService": "ledgerpost.domain.row_import",
    "AccountMappingService": "ledgerpost.domain.account_mapping",
    "JournalBuilderService": "ledgerpost.domain.journal_builder",
    "CredentialService": "ledgerpost.domain.credentials",
    "ExportService": "ledgerpost.domain.export",
    "GLPreviewService": "ledgerpost.domain.export",
    "ReversalVerifier": "ledgerpost.domain.reversal",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
