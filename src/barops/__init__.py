"""
BarOps Live: nightly revenue projection and weekly wage point-of-no-return engine.
"""
