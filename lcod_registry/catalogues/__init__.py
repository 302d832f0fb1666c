"""Catalogues — pinned, checksummed pointers to upstream component collections.

This package provides:
- Codec: the structured (``catalogues.json``) and line-delimited
  (``catalogues.jsonl``) encodings over one entry type
- Pointer: regeneration of the ``tooling/std`` pin from the upstream checkout
- Validator: verification of both encodings against each other and upstream
"""
