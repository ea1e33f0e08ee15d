#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.product import ProductModel
from storefront.data.models.session import SessionModel

__all__ = ["ProductModel", "SessionModel"]
