from rate_ledger import ConflictError, HTTPCategorySuggester, RateLedger

ledger = RateLedger(
    db_config="mongodb://127.0.0.1:27017/?DATABASE_NAME=rates",
    suggester=HTTPCategorySuggester("http://127.0.0.1:8080/suggest-category"),
)

success, error = ledger.connection()  # => to check the connectivity
if not success:
    print(error)
    exit(1)

# The category is pre-filled by the suggestion service when it answers;
# a failing service never blocks the write.
oil = ledger.create_product(
    "Fortune Sunflower Oil 1L", "Ltr", 145, 5, "Agarwal Oil Depot", suggest_category=True
)
print(oil.current_rate.category)

try:
    ledger.create_product("Fortune Sunflower Oil 1L", "Ltr", 150, 5, "Another Party")
except ConflictError as exc:
    print(exc)

oil = ledger.supersede_rate(oil.product_id, 149, 5, "Agarwal Oil Depot")
oil = ledger.supersede_rate(oil.product_id, 152, 5, "Jain Wholesale")

# Remove one superseded quotation by its timestamp
stale = oil.rate_history[-1]
oil = ledger.delete_history_entry(oil.product_id, stale.updated_at.isoformat())
print(len(oil.rate_history))
# => 1

ledger.close()
