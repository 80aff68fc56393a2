"""
Catalog reconciliation layer

Identifier registry, option flattener, record normalizer, diet-violation
policy and the reconciler that drives them, plus the change report every run
produces for audit.
"""
