"""lcod-registry — versioned, content-addressed catalog of LCOD components.

The package keeps the registry's on-disk state (catalog, version indices,
manifests) in sync with the upstream component repository and verifies
that the persisted state is well formed and faithfully pinned.
"""

__version__ = "0.1.0"
