"""Direct ledger lookups used to check state after an operation."""


def stock_of(store, product_id):
    return store.query_one("SELECT quantity FROM products WHERE id = ?", (product_id,))["quantity"]


def transaction_count(store, product_id=None):
    if product_id is None:
        row = store.query_one("SELECT COUNT(*) FROM transactions")
    else:
        row = store.query_one("SELECT COUNT(*) FROM transactions WHERE product_id = ?", (product_id,))
    return row[0]


def user_row(store, email):
    return store.query_one("SELECT id, password, role_id FROM users WHERE email = ?", (email,))
