"""
Deals module.

- Sellers only ever see ACTIVE deals (EXPIRED on request); admins see everything.
- price_type is derived from (retail_price, payout) on every write.
- Activating a deal announces it to the Discord bot (best-effort).
"""
