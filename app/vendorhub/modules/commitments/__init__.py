"""
Commitments module.

- One open commitment per (deal, seller); fulfilled + requested stays within the deal's vendor limit.
- Sellers edit their own open commitments and may mark them shipped.
- Admin fulfilment with an invoice URL creates the seller's invoice.
"""
