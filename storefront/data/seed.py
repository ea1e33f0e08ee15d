# storefront/data/seed.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.price import from_dollars
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_THUMB = "https://en.wikipedia.org/static/images/icons/wikipedia.png"
_GALLERY = "https://commons.wikimedia.org/wiki/File:Box_of_Marbles.jpg"

EXAMPLE_PRODUCTS = [
    # name, price, inventory, category, tags, keywords, tagline, description, discount
    ("Red Apple", "1.20", 100, "Produce", "Fruit,Healthy", "apple,malus",
     "A crisp, tasty red apple!", "Only the freshest...", 10.0),
    ("Green Apple", "1.10", 130, "Produce", "Fruit,Healthy", "red,apple,malus",
     "A crisp, tangy green apple!", "Only the luigiest...", None),
    ("Coffee", "7.20", 34, "Beverage", "Caffeine", "brewed,hot",
     "Burnt roast from elsewhere!", "Only the coffeeiest...", None),
    ("Tea", "4.00", 50, "Beverage", "Caffeine", "brewed,cold",
     "Bagged!", "Mostly unspilled!", 5.0),
    ("Malk", "1.10", 7, "Beverage", "Dairy", "cold",
     "Now with Vitamin R", "From the pastures of...", None),
    ("Kernberry Pie", "123.79", 8, "Bakery", "Pie", "kern,berry",
     "For eating!", "Loaded with the juiciest Kernberries...", None),
    ("Rust Cookie", "3.99", 50, "Bakery", "Rust,Cookie", "rusty",
     "Disgusting!", "Some people like it.", 25.0),
]


def seed_example_products(db: Session) -> int:
    # tylko jesli tabela jest pusta
    existing = db.execute(select(func.count()).select_from(ProductModel)).scalar_one()
    if existing > 0:
        logger.info("Products already exist, skipping seed.")
        return 0

    for name, price, inventory, category, tags, keywords, tagline, description, discount in EXAMPLE_PRODUCTS:
        db.add(
            ProductModel(
                name=name,
                price=from_dollars(price),
                inventory=inventory,
                category=category,
                tags=tags,
                keywords=keywords,
                thumbnail_url=_THUMB,
                gallery_urls=_GALLERY,
                tagline=tagline,
                description=description,
                discount_percent=discount,
            )
        )
    db.commit()

    logger.info(f"Seeded {len(EXAMPLE_PRODUCTS)} example products.")
    return len(EXAMPLE_PRODUCTS)
