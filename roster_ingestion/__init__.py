"""
roster_ingestion -- OneRoster CSV bulk ingestion and synchronization.

Pipeline: manifest check -> cell type validation -> extraction into typed
records -> reconciliation (upserts) against a target store.

Architecture:
    roster_ingestion/ is a top-level package above roster_kernel.  Nothing in
    roster_kernel imports from it.
"""
