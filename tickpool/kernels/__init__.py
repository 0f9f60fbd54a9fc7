"""
Integer-only math kernels.

These modules are designed to be:
- deterministic (no floats anywhere),
- easy to audit (explicit intermediate variables),
- pure functions over ints with fixed-width checks at the boundaries.
"""
