# guidant/services/__init__.py
# Lifecycle rules, projections and read models over the ledgers.
