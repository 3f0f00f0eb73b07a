"""
Ledger Modules.

Business documents posted through the ledger kernel.  Each module holds:
- Domain models (frozen specs and read DTOs)
- ORM models (document tables)
- Posting profiles (document -> journal entry mappings)
- A service (validation, persistence, posting in one transaction)

Modules:
- Inventory: Stock items, valuation classes, opening stock
- Sales: Customer invoices (INV)
- Purchases: Vendor bills (BILL)
- Payments: Incoming (REC) and outgoing (PAY) payments
"""
