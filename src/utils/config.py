# runtime settings, read once from the environment
import os

DB_PATH: str = os.getenv("SHOP_DB_PATH", "data/shop.sqlite")

# load dummy-data.sql after creating the tables
LOAD_SEED_DATA: bool = os.getenv("SHOP_SEED_DATA", "1").lower() not in (
    "0",
    "false",
    "no",
)

# the app has no login screen, the shopper is picked here
USER_ID: str = os.getenv("SHOP_USER_ID", "U001")

DEBUG: bool = bool(os.getenv("DEBUG"))
