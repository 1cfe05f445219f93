from rate_ledger import NoHistoryAvailableError, RateLedger

print(RateLedger.__version__)  # 0.1.0

# Default Usage: ./rate_ledger.db
ledger = RateLedger()

rice = ledger.create_product("Basmati Rice 5kg", "Pkt", "100", "18", "Sharma Traders")
print(rice.current_rate.final_rate)
# => Decimal('118.00')

# A new quotation retires the old one into history
rice = ledger.supersede_rate(rice.product_id, "104.50", "5", "Gupta & Sons")
print([entry.party_name for entry in rice.rate_history])
# => ['Sharma Traders']

# Metadata edits touch only the current rate
rice = ledger.amend_current_metadata(rice.product_id, {"category": "Grains", "pageNo": "12"})

# Roll back to the previous quotation
rice = ledger.restore_from_history(rice.product_id)
print(rice.current_rate.party_name)
# => 'Sharma Traders'

try:
    ledger.restore_from_history(rice.product_id)
except NoHistoryAvailableError as exc:
    print(exc)

# Products ordered by their latest re-pricing, optionally filtered
print([p.product_name for p in ledger.list_products(name_contains="rice")])

ledger.delete_product(rice.product_id)
ledger.close()
