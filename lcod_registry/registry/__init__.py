"""Registry — the on-disk catalog of LCOD component packages.

The registry provides:
- Manifests: content-addressed records of each published component version
- Version indices: per-package lists of versions, newest first
- Catalog: the global package id -> version index table
- Validation: a full-pass structural check of all of the above
"""
