"""
Storefront - Database Seeder
==============================
Seeds an admin, two customers and a few products, then prints bearer tokens
so the API can be exercised right away.

Usage:
    python scripts/seed.py          # Seed (idempotent)
    python scripts/seed.py --reset  # Drop all data and reseed
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from common.security import create_token
from modules.user.models import User
from modules.user.service import user_service
from modules.catalog.models import Product
from modules.catalog.service import catalog_service
from modules.inventory.models import StockMovement  # noqa: F401
from modules.cart.models import CartItem  # noqa: F401
from modules.order.models import Order, OrderItem, OrderStatusLog  # noqa: F401


USERS = [
    {"email": "admin@example.com", "name": "Store Admin", "is_admin": True},
    {"email": "alice@example.com", "name": "Alice Customer", "is_admin": False},
    {"email": "bob@example.com", "name": "Bob Customer", "is_admin": False},
]

PRODUCTS = [
    {"name": "Mechanical Keyboard", "price": "89.90", "stock": 25, "description": "Tenkeyless, brown switches"},
    {"name": "USB-C Hub", "price": "34.99", "stock": 40, "description": "7-in-1, 100W passthrough"},
    {"name": "27\" Monitor", "price": "229.00", "stock": 8, "description": "1440p IPS panel"},
    {"name": "Webcam", "price": "10.00", "stock": 5, "description": "1080p with privacy shutter"},
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        print("=" * 50)
        print("  Storefront Seeder")
        print("=" * 50)

        print("\n[1/2] Users")
        tokens = {}
        for data in USERS:
            user = db.query(User).filter(User.email == data["email"]).first()
            if not user:
                user = user_service.create_user(db, data["email"], data["name"], is_admin=data["is_admin"])
                print(f"  + {user.email}{' (admin)' if user.is_admin else ''}")
            else:
                print(f"  = exists: {user.email}")
            tokens[user.email] = create_token({"sub": str(user.id)})

        print("\n[2/2] Products")
        for data in PRODUCTS:
            product = db.query(Product).filter(Product.name == data["name"]).first()
            if not product:
                product = catalog_service.create_product(db, **data)
                print(f"  + {product.name}: {product.price} x {product.stock}")
            else:
                print(f"  = exists: {product.name} (stock {product.stock})")

        print("\nBearer tokens:")
        for email, token in tokens.items():
            print(f"  {email}\n    {token}")
    finally:
        db.close()


def reset_and_seed():
    """Drop all tables and recreate + seed."""
    Base.metadata.drop_all(bind=engine)
    print("All tables dropped")
    seed()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        confirm = input("This will DELETE ALL DATA. Type 'yes' to confirm: ")
        if confirm.strip().lower() == "yes":
            reset_and_seed()
        else:
            print("Aborted.")
    else:
        seed()
