"""
SQLite persistence for wallet links and the accrual ledger.
"""
