"""
cricauction - Live Player Auction

A host-driven cricket player auction with a replicated broadcast view:
- Tiered bid increments and purse/squad limits
- Single Live item state machine with an owned countdown
- Snapshot replication over a shared remote document
- SQLite cold-start cache
"""
